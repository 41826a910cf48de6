"""Metadata ingestion and embedding storage.

This module provides:
- MetadataIngestionScheduler: bounded-concurrency generate -> classify -> persist
- EmbeddingStorer: embedding segments to clip vectors, with retries
- Models for lifecycle records and pass reports

Example:
    >>> from adlibrary.services.ingestion import MetadataIngestionScheduler, VideoSummary
    >>> scheduler = MetadataIngestionScheduler(client)
    >>> report = await scheduler.run([VideoSummary("video-1", "index-1")], limit=10)
"""

from .embedding_store import EmbeddingStorer, build_vector_records, resolve_file_names
from .models import (
    POPULATED_METADATA_FIELDS,
    IngestionReport,
    ProcessingStatus,
    StoreResult,
    VideoProcessingRecord,
    VideoSummary,
)
from .protocols import IndexingChecker, MetadataApi, VideoDetailsSource
from .scheduler import MetadataIngestionScheduler

__all__ = [
    # Protocols
    "MetadataApi",
    "IndexingChecker",
    "VideoDetailsSource",
    # Models
    "POPULATED_METADATA_FIELDS",
    "IngestionReport",
    "ProcessingStatus",
    "StoreResult",
    "VideoProcessingRecord",
    "VideoSummary",
    # Services
    "MetadataIngestionScheduler",
    "EmbeddingStorer",
    "build_vector_records",
    "resolve_file_names",
]
