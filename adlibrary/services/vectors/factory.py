"""Factory functions for creating vector stores with configured defaults."""

from typing import Optional

from adlibrary.lib.config_manager import config

from .config import VectorStoreConfig
from .in_memory_store import InMemoryVectorStore
from .qdrant_store import QdrantVectorStore


def create_qdrant_store(store_config: Optional[VectorStoreConfig] = None) -> QdrantVectorStore:
    """Create a QdrantVectorStore from QDRANT_* / VECTOR_DIMENSION settings.

    Example:
        >>> store = create_qdrant_store()
        >>> store.collection_name
        'video_clips'
    """
    if store_config is None:
        store_config = VectorStoreConfig(
            qdrant_url=config.get("QDRANT_URL"),
            collection_name=config.get("QDRANT_COLLECTION"),
            dimension=config.get("VECTOR_DIMENSION"),
            api_key=config.get("QDRANT_API_KEY") or None,
            timeout=config.get("HTTP_TIMEOUT_SECONDS"),
        )
    return QdrantVectorStore(store_config)


def create_in_memory_store(dimension: Optional[int] = None) -> InMemoryVectorStore:
    """Create an InMemoryVectorStore for tests and dry runs."""
    return InMemoryVectorStore(dimension=dimension or config.get("VECTOR_DIMENSION"))
