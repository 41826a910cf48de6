"""Response models for the video-understanding API."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EmbeddingSegment(BaseModel):
    """One embedding segment of a video.

    The API names the vector field ``float``; it is exposed here as ``values``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    embedding_scope: str = "clip"
    embedding_option: Optional[str] = None
    start_offset_sec: float = 0.0
    end_offset_sec: float = 0.0
    values: list[float] = Field(default_factory=list, alias="float")


class VideoEmbedding(BaseModel):
    segments: list[EmbeddingSegment] = Field(default_factory=list)


class Embedding(BaseModel):
    model_config = ConfigDict(extra="allow", protected_namespaces=())

    model_name: Optional[str] = None
    video_embedding: Optional[VideoEmbedding] = None


class VideoDetails(BaseModel):
    """A video as returned by the detail and listing endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id")
    index_id: Optional[str] = None
    system_metadata: dict[str, Any] = Field(default_factory=dict)
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: Optional[Embedding] = None

    @field_validator("system_metadata", "user_metadata", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def filename(self) -> str:
        return str(self.system_metadata.get("filename") or "")

    @property
    def video_title(self) -> str:
        return str(self.system_metadata.get("video_title") or "")


class PageInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    page: int = 1
    total_page: int = 1
    total_results: Optional[int] = None


class VideoPage(BaseModel):
    """One page of a video listing."""

    data: list[VideoDetails] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo)

    @property
    def has_more(self) -> bool:
        return self.page_info.page < self.page_info.total_page


class IndexingTask(BaseModel):
    """An upload task; status becomes "ready" once indexing finishes."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id")
    video_id: Optional[str] = None
    index_id: Optional[str] = None
    status: str = ""
    system_metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("system_metadata", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class TaskPage(BaseModel):
    """One page of an upload task listing."""

    data: list[IndexingTask] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo)

    @property
    def has_more(self) -> bool:
        return self.page_info.page < self.page_info.total_page
