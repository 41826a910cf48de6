"""Embedding storage: video API segments to clip vectors in the vector store.

Storage is retried with a bounded linear backoff and never raises; the
outcome is always a StoreResult.
"""

import logging
from typing import Optional

from adlibrary.lib.config_manager import config
from adlibrary.lib.errors import DataShapeError
from adlibrary.lib.retry import RetryPolicy, retry_until_success_async
from adlibrary.services.twelvelabs.models import EmbeddingSegment, VideoDetails
from adlibrary.services.vectors.models import VectorRecord, category_for_index
from adlibrary.services.vectors.protocols import VectorStore

from .models import StoreResult
from .protocols import VideoDetailsSource

logger = logging.getLogger(__name__)


def resolve_file_names(video: VideoDetails) -> tuple[str, str]:
    """Return (filename, title) with fallbacks.

    Filename falls back to "<video_id>.mp4"; title falls back to the part
    of the filename before its first dot.
    """
    filename = video.filename or f"{video.id}.mp4"
    title = video.video_title or filename.split(".")[0] or filename
    return filename, title


def build_vector_records(
    video_id: str,
    index_id: str,
    segments: list[EmbeddingSegment],
    filename: str,
    title: Optional[str] = None,
    dimension: Optional[int] = None,
) -> list[VectorRecord]:
    """Convert embedding segments into vector records.

    Raises:
        DataShapeError: If there are no segments, or a segment has no
            values or the wrong dimension
    """
    if not segments:
        raise DataShapeError(f"Embedding for video {video_id} has no segments")

    category = category_for_index(index_id)
    records = []
    for position, segment in enumerate(segments, start=1):
        if not segment.values:
            raise DataShapeError(f"Segment {position} of video {video_id} has no values")
        if dimension is not None and len(segment.values) != dimension:
            raise DataShapeError(
                f"Segment {position} of video {video_id} has {len(segment.values)} "
                f"dimensions, expected {dimension}"
            )

        scope = segment.embedding_scope or "clip"
        records.append(
            VectorRecord(
                id=f"{video_id}_{scope}_{position}",
                values=segment.values,
                metadata={
                    "tl_video_id": video_id,
                    "tl_index_id": index_id,
                    "scope": scope,
                    "start_time": segment.start_offset_sec,
                    "end_time": segment.end_offset_sec,
                    "video_segment": position,
                    "category": category,
                    "video_file": filename,
                    "video_title": title or filename,
                },
            )
        )
    return records


class EmbeddingStorer:
    """Fetches a video's embedding segments and upserts them as clip vectors.

    Example:
        >>> storer = EmbeddingStorer(client, store)
        >>> result = await storer.store_embedding("video-123", "ads-index")
        >>> result.success, result.attempts
    """

    def __init__(
        self,
        videos: VideoDetailsSource,
        store: VectorStore,
        policy: Optional[RetryPolicy] = None,
    ):
        self.videos = videos
        self.store = store
        self.policy = policy or RetryPolicy(
            max_attempts=config.get("EMBEDDING_MAX_ATTEMPTS"),
            base_delay=config.get("EMBEDDING_BASE_DELAY"),
        )

    async def store_once(self, video_id: str, index_id: str) -> StoreResult:
        """Single storage attempt.

        Missing embedding data is reported as a failed result; upstream
        errors propagate to the retry loop.
        """
        video = await self.videos.get_video(video_id, index_id, embed=True)

        embedding = video.embedding
        if embedding is None or embedding.video_embedding is None:
            return StoreResult.fail("No embedding data found")

        filename, title = resolve_file_names(video)
        try:
            records = build_vector_records(
                video_id,
                index_id,
                embedding.video_embedding.segments,
                filename,
                title=title,
                dimension=self.store.dimension,
            )
        except DataShapeError as e:
            return StoreResult.fail(str(e))

        stored = await self.store.upsert(records)
        logger.info(f"Stored {stored} vectors for {video_id} ({title})")
        return StoreResult.ok(stored, message=f"Stored {stored} vectors")

    async def store_embedding(self, video_id: str, index_id: str) -> StoreResult:
        """Store a video's embeddings with retries. Never raises.

        Returns:
            The last attempt's StoreResult with attempts filled in
        """
        if not video_id or not index_id:
            return StoreResult.fail("video_id and index_id are required")

        result, attempts = await retry_until_success_async(
            lambda: self.store_once(video_id, index_id),
            self.policy,
            on_error=lambda e: StoreResult.fail(str(e) or type(e).__name__),
            describe=f"Embedding storage for {video_id}",
        )
        result.attempts = attempts
        return result
