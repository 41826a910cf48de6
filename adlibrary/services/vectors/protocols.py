"""Vector store protocol for dependency injection.

The protocol uses structural subtyping, so any class providing these
members can back the similarity matcher and the embedding storer.

Implementations:
- QdrantVectorStore: Qdrant server (production)
- InMemoryVectorStore: Python lists (tests, dry runs)
"""

from typing import Optional, Protocol, Sequence

from .models import VectorMatch, VectorRecord


class VectorStore(Protocol):
    """Query and upsert interface over clip embeddings."""

    dimension: int

    async def query(
        self,
        vector: Sequence[float],
        filter: Optional[dict[str, str]] = None,
        top_k: int = 10,
        include_metadata: bool = True,
        include_values: bool = False,
    ) -> list[VectorMatch]:
        """Nearest-neighbour query restricted by exact-match metadata filters.

        Args:
            vector: Query vector of length `dimension`
            filter: Metadata field -> required value
            top_k: Maximum number of matches
            include_metadata: Return stored metadata with each match
            include_values: Return raw vector values with each match

        Returns:
            Matches ordered by descending score

        Raises:
            UpstreamError: If the store cannot be reached
        """
        ...

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        """Insert or replace vectors, returning the number written."""
        ...
