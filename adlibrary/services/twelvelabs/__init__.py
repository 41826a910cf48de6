"""Adapters for the video-understanding API.

Example:
    >>> from adlibrary.services.twelvelabs import TwelveLabsClient
    >>> async with TwelveLabsClient() as client:
    ...     page = await client.list_videos("index-1")
"""

from .client import TwelveLabsClient
from .config import TwelveLabsConfig
from .models import (
    Embedding,
    EmbeddingSegment,
    IndexingTask,
    PageInfo,
    TaskPage,
    VideoDetails,
    VideoEmbedding,
    VideoPage,
)
from .upload_tracker import READY_STATUS, UploadTask, UploadTracker

__all__ = [
    "TwelveLabsClient",
    "TwelveLabsConfig",
    # Models
    "Embedding",
    "EmbeddingSegment",
    "IndexingTask",
    "PageInfo",
    "TaskPage",
    "VideoDetails",
    "VideoEmbedding",
    "VideoPage",
    # Upload tracking
    "READY_STATUS",
    "UploadTask",
    "UploadTracker",
]
