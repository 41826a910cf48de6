"""Data models for vector store records and query results."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class VectorMetadata(BaseModel):
    """Metadata stored alongside each clip vector.

    Only the linking fields are typed; anything else the store returns
    (start_time, category, video_file, ...) is kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    tl_video_id: Optional[str] = None
    tl_index_id: Optional[str] = None
    scope: Optional[str] = None


class VectorMatch(BaseModel):
    """A single result returned by a vector store query.

    Attributes:
        id: Vector id in the store
        score: Similarity score, higher is more similar
        metadata: Linking metadata (owning video/index and scope)
        values: Raw embedding, only present when requested
        result_type: Annotation added when results are merged ("clip")
    """

    id: str
    score: float = 0.0
    metadata: VectorMetadata = Field(default_factory=VectorMetadata)
    values: Optional[list[float]] = None
    result_type: Optional[str] = None

    @property
    def video_id(self) -> Optional[str]:
        return self.metadata.tl_video_id


class VectorRecord(BaseModel):
    """A vector to upsert into the store."""

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorStatus(BaseModel):
    """Whether a video already has vectors in the store."""

    processed: bool
    video_id: str
    index_id: str
    category: str
    matches_count: int = 0
    first_match_id: Optional[str] = None
    source: str = "vector_store"


def category_for_index(index_id: str) -> str:
    """Ads indexes carry "ad" in their id; everything else is content."""
    return "ad" if "ad" in index_id.lower() else "content"
