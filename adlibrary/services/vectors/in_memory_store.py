"""In-memory vector store implementation for testing.

Stores vectors in a dict (no persistence) and scores with cosine
similarity. Useful for unit tests and dry runs without a Qdrant server.
"""

import math
from typing import Optional, Sequence

from adlibrary.lib.errors import DataShapeError

from .models import VectorMatch, VectorMetadata, VectorRecord


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity, 0.0 when either vector has zero length."""
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return sum(x * y for x, y in zip(a, b)) / (norm_a * norm_b)


class InMemoryVectorStore:
    """In-memory VectorStore (no persistence).

    Example:
        >>> store = InMemoryVectorStore(dimension=3)
        >>> await store.upsert([VectorRecord(id="v1", values=[1, 0, 0], metadata={"scope": "clip"})])
        >>> await store.query([1, 0, 0], filter={"scope": "clip"}, top_k=1)
    """

    def __init__(self, dimension: int = 1024):
        self.dimension = dimension
        self._records: dict[str, VectorRecord] = {}
        self.query_calls: list[dict] = []

    async def query(
        self,
        vector: Sequence[float],
        filter: Optional[dict[str, str]] = None,
        top_k: int = 10,
        include_metadata: bool = True,
        include_values: bool = False,
    ) -> list[VectorMatch]:
        if len(vector) != self.dimension:
            raise DataShapeError(
                f"Query vector has {len(vector)} dimensions, expected {self.dimension}"
            )

        self.query_calls.append({"vector": list(vector), "filter": dict(filter or {}), "top_k": top_k})

        conditions = filter or {}
        candidates = [
            record for record in self._records.values()
            if all(record.metadata.get(k) == v for k, v in conditions.items())
        ]

        scored = [(cosine_similarity(vector, r.values), r) for r in candidates]
        scored.sort(key=lambda item: item[0], reverse=True)

        return [
            VectorMatch(
                id=record.id,
                score=score,
                metadata=VectorMetadata(**record.metadata) if include_metadata else VectorMetadata(),
                values=list(record.values) if include_values else None,
            )
            for score, record in scored[:top_k]
        ]

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        for record in records:
            if len(record.values) != self.dimension:
                raise DataShapeError(
                    f"Vector {record.id} has {len(record.values)} dimensions, "
                    f"expected {self.dimension}"
                )
            self._records[record.id] = record
        return len(records)

    def count(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()
        self.query_calls.clear()
