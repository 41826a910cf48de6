"""Collaborator interfaces for metadata ingestion and embedding storage.

TwelveLabsClient and UploadTracker satisfy these; tests pass fakes.
"""

from typing import Protocol

from adlibrary.services.twelvelabs.models import VideoDetails


class MetadataApi(Protocol):
    """Hashtag generation and metadata persistence."""

    async def generate_metadata_text(self, video_id: str) -> str:
        ...

    async def persist_metadata(
        self, video_id: str, index_id: str, metadata: dict[str, str]
    ) -> bool:
        ...


class IndexingChecker(Protocol):
    def is_indexing(self, video_id: str) -> bool:
        ...


class VideoDetailsSource(Protocol):
    async def get_video(self, video_id: str, index_id: str, embed: bool = False) -> VideoDetails:
        ...
