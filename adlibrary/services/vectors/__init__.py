"""Clip vector storage and video-to-video similarity search.

This module provides:
- VectorStore protocol (interface for dependency injection)
- QdrantVectorStore and InMemoryVectorStore implementations
- SimilarityMatcher for clip fan-out search with per-video dedup

Example:
    >>> from adlibrary.services.vectors import SimilarityMatcher, create_qdrant_store
    >>> matcher = SimilarityMatcher(create_qdrant_store())
    >>> matches = await matcher.find_similar("video-123", "ads-index")
"""

from .config import VectorStoreConfig
from .factory import create_in_memory_store, create_qdrant_store
from .in_memory_store import InMemoryVectorStore, cosine_similarity
from .matcher import SimilarityMatcher, dedupe_by_video, rank_matches
from .models import VectorMatch, VectorMetadata, VectorRecord, VectorStatus, category_for_index
from .protocols import VectorStore
from .qdrant_store import QdrantVectorStore

__all__ = [
    # Protocol
    "VectorStore",
    # Implementations
    "QdrantVectorStore",
    "InMemoryVectorStore",
    "VectorStoreConfig",
    # Models
    "VectorMatch",
    "VectorMetadata",
    "VectorRecord",
    "VectorStatus",
    "category_for_index",
    # Matching
    "SimilarityMatcher",
    "dedupe_by_video",
    "rank_matches",
    "cosine_similarity",
    # Factory functions
    "create_qdrant_store",
    "create_in_memory_store",
]
