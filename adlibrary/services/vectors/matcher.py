"""Video-to-video similarity over clip embeddings.

A source video is expanded into its clip vectors, each clip is used as a
query against the target index, and the merged results are collapsed to
one best match per target video.

Pipeline:
1. Source expansion: filter-only lookup of the source's clips (zero vector)
2. Fan-out: one similarity query per clip, run concurrently
3. Merge: concatenate all fan-out matches, annotated as "clip" results
4. Dedup: keep the highest-scoring match per tl_video_id
5. Sort: descending score
"""

import asyncio
import logging
from typing import Iterable

from opentelemetry import metrics

from adlibrary.lib.errors import DataShapeError, UpstreamError, ValidationError

from .models import VectorMatch, VectorStatus, category_for_index
from .protocols import VectorStore

logger = logging.getLogger(__name__)

meter = metrics.get_meter(__name__)
similarity_queries_counter = meter.create_counter(
    "similarity.queries",
    description="Vector store queries issued by the similarity matcher",
    unit="1",
)

CLIP_SCOPE = "clip"
SOURCE_TOP_K = 100
FANOUT_TOP_K = 5

_TAXONOMY_ERRORS = (ValidationError, UpstreamError, DataShapeError)


def dedupe_by_video(matches: Iterable[VectorMatch]) -> dict[str, VectorMatch]:
    """Collapse matches to the best-scoring one per target video.

    Matches without a tl_video_id are dropped. On equal scores the match
    seen first wins.
    """
    best: dict[str, VectorMatch] = {}
    for match in matches:
        video_id = match.video_id
        if not video_id:
            continue
        current = best.get(video_id)
        if current is None or current.score < match.score:
            best[video_id] = match
    return best


def rank_matches(matches: Iterable[VectorMatch]) -> list[VectorMatch]:
    """Dedupe by target video, then order by descending score."""
    return sorted(dedupe_by_video(matches).values(), key=lambda m: m.score, reverse=True)


class SimilarityMatcher:
    """Finds videos in a target index that look like a source video.

    Example:
        >>> matcher = SimilarityMatcher(store)
        >>> matches = await matcher.find_similar("video-123", "ads-index")
        >>> [(m.video_id, m.score) for m in matches]
    """

    def __init__(
        self,
        store: VectorStore,
        source_top_k: int = SOURCE_TOP_K,
        fanout_top_k: int = FANOUT_TOP_K,
    ):
        self.store = store
        self.source_top_k = source_top_k
        self.fanout_top_k = fanout_top_k

    def _zero_vector(self) -> list[float]:
        return [0.0] * self.store.dimension

    async def _expand_source(self, source_video_id: str) -> list[VectorMatch]:
        similarity_queries_counter.add(1, {"kind": "source"})
        return await self.store.query(
            self._zero_vector(),
            filter={"tl_video_id": source_video_id, "scope": CLIP_SCOPE},
            top_k=self.source_top_k,
            include_metadata=True,
            include_values=True,
        )

    async def _query_clip(self, clip: VectorMatch, target_index_id: str) -> list[VectorMatch]:
        if not clip.values:
            raise DataShapeError(f"Clip {clip.id} was returned without embedding values")

        similarity_queries_counter.add(1, {"kind": "fanout"})
        return await self.store.query(
            clip.values,
            filter={"tl_index_id": target_index_id, "scope": CLIP_SCOPE},
            top_k=self.fanout_top_k,
            include_metadata=True,
        )

    async def find_similar(self, source_video_id: str, target_index_id: str) -> list[VectorMatch]:
        """Rank target-index videos by their best clip similarity to the source.

        Args:
            source_video_id: Video whose clips are used as queries
            target_index_id: Index to search for similar videos

        Returns:
            One match per target video, highest score first

        Raises:
            ValidationError: If either id is missing
            UpstreamError: If any vector store query fails
            DataShapeError: If a source clip has no embedding values
        """
        if not source_video_id or not target_index_id:
            raise ValidationError("source_video_id and target_index_id are required")

        clips = await self._expand_source(source_video_id)
        if not clips:
            logger.info(f"No clip embeddings found for video {source_video_id}")
            return []

        logger.info(
            f"Searching {target_index_id} with {len(clips)} clips of video {source_video_id}"
        )

        # Every query settles before the merge, even when one of them fails.
        results = await asyncio.gather(
            *(self._query_clip(clip, target_index_id) for clip in clips),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            logger.error(
                f"{len(failures)}/{len(clips)} clip queries failed for video {source_video_id}"
            )
            first = failures[0]
            if isinstance(first, _TAXONOMY_ERRORS):
                raise first
            raise UpstreamError(f"Similarity search failed: {first}") from first

        merged = [
            match.model_copy(update={"result_type": CLIP_SCOPE})
            for batch in results
            for match in batch
        ]
        ranked = rank_matches(merged)

        logger.info(
            f"Found {len(ranked)} similar videos for {source_video_id} "
            f"from {len(merged)} clip matches"
        )
        return ranked

    async def check_status(self, video_id: str, index_id: str) -> VectorStatus:
        """Report whether a video already has vectors in the store.

        Raises:
            ValidationError: If either id is missing
            UpstreamError: If the vector store query fails
        """
        if not video_id or not index_id:
            raise ValidationError("video_id and index_id are required")

        similarity_queries_counter.add(1, {"kind": "status"})
        matches = await self.store.query(
            self._zero_vector(),
            filter={"tl_video_id": video_id},
            top_k=1,
            include_metadata=True,
        )

        return VectorStatus(
            processed=bool(matches),
            video_id=video_id,
            index_id=index_id,
            category=category_for_index(index_id),
            matches_count=len(matches),
            first_match_id=matches[0].id if matches else None,
        )
