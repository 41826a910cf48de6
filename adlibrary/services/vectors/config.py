"""Configuration for vector store implementations."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class VectorStoreConfig:
    """Configuration for the Qdrant-backed vector store.

    Example:
        >>> config = VectorStoreConfig(
        ...     qdrant_url="http://qdrant:6333",
        ...     collection_name="video_clips",
        ... )
        >>> store = QdrantVectorStore(config)
    """

    qdrant_url: str = "http://localhost:6333"
    collection_name: str = "video_clips"
    dimension: int = 1024  # Marengo clip embeddings
    api_key: Optional[str] = None
    timeout: float = 60.0
