"""Qdrant implementation of the VectorStore protocol.

Clip vectors are stored with their linking metadata as a flat payload
(tl_video_id, tl_index_id, scope, ...) so filters map directly onto
payload field conditions. The client is synchronous; calls run in a worker
thread so concurrent fan-out queries do not block the event loop.
"""

import asyncio
import hashlib
import logging
import uuid
from typing import Any, Optional, Sequence

import httpx
from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from adlibrary.lib.errors import DataShapeError, UpstreamError

from .config import VectorStoreConfig
from .models import VectorMatch, VectorMetadata, VectorRecord

logger = logging.getLogger(__name__)

# Payload key holding the caller's vector id (Qdrant ids must be UUIDs or ints)
VECTOR_ID_KEY = "vector_id"

FILTERABLE_FIELDS = ("tl_video_id", "tl_index_id", "scope")

QDRANT_ERRORS = (UnexpectedResponse, ResponseHandlingException, httpx.HTTPError)


class QdrantVectorStore:
    """Qdrant-based clip vector store.

    Example:
        >>> store = QdrantVectorStore(VectorStoreConfig(qdrant_url="http://qdrant:6333"))
        >>> matches = await store.query(vector, filter={"scope": "clip"}, top_k=5)
    """

    def __init__(self, config: VectorStoreConfig, client: Optional[QdrantClient] = None):
        """Initialize the store.

        Args:
            config: Connection and collection settings
            client: Optional pre-built client (tests inject a mock)
        """
        self.config = config
        self.collection_name = config.collection_name
        self.dimension = config.dimension
        self.client = client or QdrantClient(
            url=config.qdrant_url,
            api_key=config.api_key or None,
            timeout=int(config.timeout),
        )
        self._collection_ready = False

    def _ensure_collection(self) -> None:
        """Ensure the collection exists, create it with keyword indexes if not."""
        if self._collection_ready:
            return

        collections = self.client.get_collections().collections
        if self.collection_name not in [c.name for c in collections]:
            logger.info(f"Creating collection {self.collection_name} (dim={self.dimension})")
            self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=VectorParams(size=self.dimension, distance=Distance.COSINE),
            )
            for field in FILTERABLE_FIELDS:
                self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field,
                    field_schema=PayloadSchemaType.KEYWORD,
                )

        self._collection_ready = True

    @staticmethod
    def _key_to_id(key: str) -> str:
        """Convert a vector id to a deterministic Qdrant point UUID."""
        hash_hex = hashlib.sha256(key.encode()).hexdigest()[:32]
        return str(uuid.UUID(hash_hex))

    @staticmethod
    def _build_filter(conditions: Optional[dict[str, str]]) -> Optional[Filter]:
        if not conditions:
            return None
        return Filter(
            must=[
                FieldCondition(key=key, match=MatchValue(value=value))
                for key, value in conditions.items()
            ]
        )

    def _to_match(
        self,
        point: Any,
        score: float,
        include_metadata: bool,
        include_values: bool,
    ) -> VectorMatch:
        payload = dict(point.payload or {})
        vector_id = payload.pop(VECTOR_ID_KEY, None) or str(point.id)

        values = None
        if include_values and isinstance(point.vector, list):
            values = [float(v) for v in point.vector]

        return VectorMatch(
            id=vector_id,
            score=score,
            metadata=VectorMetadata(**payload) if include_metadata else VectorMetadata(),
            values=values,
        )

    def _query_sync(
        self,
        vector: list[float],
        conditions: Optional[dict[str, str]],
        top_k: int,
        include_metadata: bool,
        include_values: bool,
    ) -> list[VectorMatch]:
        self._ensure_collection()
        qdrant_filter = self._build_filter(conditions)

        if not any(vector):
            # Cosine distance is undefined for a zero vector: serve a
            # filter-only lookup instead, every match scoring 0.
            points, _ = self.client.scroll(
                collection_name=self.collection_name,
                scroll_filter=qdrant_filter,
                limit=top_k,
                with_payload=True,
                with_vectors=include_values,
            )
            return [self._to_match(p, 0.0, include_metadata, include_values) for p in points]

        results = self.client.query_points(
            collection_name=self.collection_name,
            query=vector,
            query_filter=qdrant_filter,
            limit=top_k,
            with_payload=True,
            with_vectors=include_values,
        )
        return [
            self._to_match(p, p.score, include_metadata, include_values)
            for p in results.points
        ]

    async def query(
        self,
        vector: Sequence[float],
        filter: Optional[dict[str, str]] = None,
        top_k: int = 10,
        include_metadata: bool = True,
        include_values: bool = False,
    ) -> list[VectorMatch]:
        """Nearest-neighbour query with exact-match payload filters."""
        if len(vector) != self.dimension:
            raise DataShapeError(
                f"Query vector has {len(vector)} dimensions, expected {self.dimension}"
            )

        try:
            return await asyncio.to_thread(
                self._query_sync,
                list(vector),
                filter,
                top_k,
                include_metadata,
                include_values,
            )
        except QDRANT_ERRORS as e:
            raise UpstreamError(f"Qdrant query failed: {e}") from e

    def _upsert_sync(self, records: Sequence[VectorRecord]) -> int:
        self._ensure_collection()
        points = [
            PointStruct(
                id=self._key_to_id(record.id),
                vector=record.values,
                payload={**record.metadata, VECTOR_ID_KEY: record.id},
            )
            for record in records
        ]
        self.client.upsert(collection_name=self.collection_name, points=points)
        return len(points)

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        """Insert or replace clip vectors."""
        if not records:
            return 0

        for record in records:
            if len(record.values) != self.dimension:
                raise DataShapeError(
                    f"Vector {record.id} has {len(record.values)} dimensions, "
                    f"expected {self.dimension}"
                )

        try:
            return await asyncio.to_thread(self._upsert_sync, records)
        except QDRANT_ERRORS as e:
            raise UpstreamError(f"Qdrant upsert failed: {e}") from e

    def close(self) -> None:
        """Close the Qdrant client connection."""
        if self.client:
            self.client.close()
