"""Concurrency-bounded metadata ingestion.

Drives hashtag generation, classification and metadata persistence across
many videos:
- eligible videos are partitioned into groups of at most `limit`
- each group runs concurrently and fully settles before the next starts
- every video has a lifecycle record; processed ids are never revisited
- a failure marks only that video Failed, siblings keep going

Passes triggered while one is running, or within the cooldown window after
one finished, are suppressed.

Embedding storage starts once a video's metadata is persisted but runs
outside its group, so storage retries never hold back the next group. The
pass waits for all of it before returning.
"""

import asyncio
import logging
import time
import uuid
from typing import Awaitable, Callable, Iterable, Optional, Union

from opentelemetry import metrics

from adlibrary.lib.config_manager import config
from adlibrary.lib.errors import ValidationError
from adlibrary.lib.logging_config import CorrelationFilter, log_with_context
from adlibrary.services.tagging import ClassifiedMetadata, classify

from .embedding_store import EmbeddingStorer
from .models import IngestionReport, ProcessingStatus, VideoProcessingRecord, VideoSummary
from .protocols import IndexingChecker, MetadataApi

logger = logging.getLogger(__name__)

meter = metrics.get_meter(__name__)
processed_counter = meter.create_counter(
    "ingestion.videos.processed",
    description="Videos whose metadata was generated and persisted",
    unit="1",
)
failed_counter = meter.create_counter(
    "ingestion.videos.failed",
    description="Videos whose metadata generation or persistence failed",
    unit="1",
)
skipped_counter = meter.create_counter(
    "ingestion.videos.skipped",
    description="Videos skipped because they already carried metadata",
    unit="1",
)

CompletionCallback = Callable[[str, ClassifiedMetadata], Union[None, Awaitable[None]]]


class MetadataIngestionScheduler:
    """Runs ingestion passes over candidate videos.

    Example:
        >>> scheduler = MetadataIngestionScheduler(client, indexing=tracker)
        >>> report = await scheduler.run(videos, limit=10)
        >>> report.processed, report.failed
    """

    def __init__(
        self,
        api: MetadataApi,
        indexing: Optional[IndexingChecker] = None,
        limit: Optional[int] = None,
        cooldown_seconds: Optional[float] = None,
        on_complete: Optional[CompletionCallback] = None,
        embedding_storer: Optional[EmbeddingStorer] = None,
        correlation_filter: Optional[CorrelationFilter] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the scheduler.

        Args:
            api: Hashtag generation and metadata persistence
            indexing: Reports videos still being indexed (none if omitted)
            limit: Default group size (METADATA_CONCURRENCY_LIMIT)
            cooldown_seconds: Suppression window after a pass (REFRESH_COOLDOWN_SECONDS)
            on_complete: Called after each successful persist
            embedding_storer: Stores embeddings after each successful persist
            correlation_filter: Log filter that receives each pass's correlation id
            clock: Monotonic time source
        """
        self.api = api
        self.indexing = indexing
        self.limit = limit if limit is not None else config.get("METADATA_CONCURRENCY_LIMIT")
        self.cooldown_seconds = (
            cooldown_seconds
            if cooldown_seconds is not None
            else config.get("REFRESH_COOLDOWN_SECONDS")
        )
        self.on_complete = on_complete
        self.embedding_storer = embedding_storer
        self.correlation_filter = correlation_filter
        self._clock = clock

        self.records: dict[str, VideoProcessingRecord] = {}
        self.processed: set[str] = set()
        self.in_flight: set[str] = set()
        self._claim_lock = asyncio.Lock()
        self._running = False
        self._finished_at: Optional[float] = None
        self._storage_tasks: set[asyncio.Task] = set()

    # =========================================================================
    # State
    # =========================================================================

    def _record(self, video_id: str) -> VideoProcessingRecord:
        record = self.records.get(video_id)
        if record is None:
            record = VideoProcessingRecord(video_id=video_id)
            self.records[video_id] = record
        return record

    def status_of(self, video_id: str) -> ProcessingStatus:
        record = self.records.get(video_id)
        return record.status if record else ProcessingStatus.NOT_STARTED

    def processing_count(self) -> int:
        return sum(1 for r in self.records.values() if r.status == ProcessingStatus.PROCESSING)

    def is_suppressed(self) -> bool:
        """True while a pass runs or within the cooldown after the last one."""
        if self._running:
            return True
        if self._finished_at is None:
            return False
        return self._clock() - self._finished_at < self.cooldown_seconds

    async def _claim(self, video_id: str) -> bool:
        async with self._claim_lock:
            if video_id in self.processed or video_id in self.in_flight:
                return False
            self.in_flight.add(video_id)
            self._record(video_id).transition(ProcessingStatus.PROCESSING)
            return True

    async def _settle(
        self, video_id: str, status: ProcessingStatus, error: Optional[str] = None
    ) -> None:
        async with self._claim_lock:
            self.in_flight.discard(video_id)
            if status == ProcessingStatus.PROCESSED:
                self.processed.add(video_id)
            self._record(video_id).transition(status, error)

    # =========================================================================
    # Pass
    # =========================================================================

    def _select(self, videos: Iterable[VideoSummary], report: IngestionReport) -> list[VideoSummary]:
        """Evaluate eligibility once per pass; mark videos with metadata skipped."""
        eligible = []
        seen: set[str] = set()

        for video in videos:
            video_id = video.video_id
            if not video_id or video_id in seen:
                continue
            seen.add(video_id)
            self._record(video_id)

            if video_id in self.processed or video_id in self.in_flight:
                continue
            if self.indexing is not None and self.indexing.is_indexing(video_id):
                logger.debug(f"Video {video_id} is still indexing, leaving it for a later pass")
                continue
            if video.has_metadata():
                self._record(video_id).transition(ProcessingStatus.SKIPPED_HAS_METADATA)
                self.processed.add(video_id)
                report.skipped.append(video_id)
                skipped_counter.add(1)
                continue

            eligible.append(video)

        return eligible

    async def run(
        self, videos: Iterable[VideoSummary], limit: Optional[int] = None
    ) -> IngestionReport:
        """Run one ingestion pass.

        Args:
            videos: Candidate videos with their currently known metadata
            limit: Maximum number of videos processed concurrently

        Returns:
            IngestionReport; suppressed=True if the pass did not run

        Raises:
            ValidationError: If limit is less than 1
        """
        limit = self.limit if limit is None else limit
        if limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}")

        if self.is_suppressed():
            logger.info("Ingestion pass suppressed: another pass is running or cooling down")
            return IngestionReport(suppressed=True)

        self._running = True
        correlation_id = uuid.uuid4().hex[:12]
        report = IngestionReport(correlation_id=correlation_id)
        if self.correlation_filter is not None:
            self.correlation_filter.set_correlation_id(correlation_id)

        try:
            eligible = self._select(videos, report)
            log_with_context(
                logger,
                "info",
                f"Starting ingestion pass: {len(eligible)} eligible, {len(report.skipped)} skipped",
                correlation_id=correlation_id,
                limit=limit,
            )

            for start in range(0, len(eligible), limit):
                group = eligible[start:start + limit]
                await self._run_group(group, report, correlation_id)

            if self._storage_tasks:
                await asyncio.gather(*self._storage_tasks)

            log_with_context(
                logger,
                "info",
                f"Ingestion pass complete: {len(report.processed)} processed, "
                f"{len(report.skipped)} skipped, {len(report.failed)} failed",
                correlation_id=correlation_id,
            )
            return report
        finally:
            for task in self._storage_tasks:
                task.cancel()
            self._storage_tasks.clear()
            if self.correlation_filter is not None:
                self.correlation_filter.set_correlation_id(None)
            self._running = False
            self._finished_at = self._clock()

    async def _run_group(
        self, group: list[VideoSummary], report: IngestionReport, correlation_id: str
    ) -> None:
        claimed = [video for video in group if await self._claim(video.video_id)]

        results = await asyncio.gather(
            *(self._process(video, correlation_id) for video in claimed),
            return_exceptions=True,
        )

        for video, result in zip(claimed, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                await self._fail(video.video_id, str(result), correlation_id)
                result = False
            if result:
                report.processed.append(video.video_id)
            else:
                report.failed.append(video.video_id)

    async def _fail(self, video_id: str, error: str, correlation_id: str) -> None:
        await self._settle(video_id, ProcessingStatus.FAILED, error)
        failed_counter.add(1)
        log_with_context(
            logger,
            "warning",
            f"Metadata ingestion failed for {video_id}: {error}",
            correlation_id=correlation_id,
            video_id=video_id,
        )

    async def _process(self, video: VideoSummary, correlation_id: str) -> bool:
        """generate -> classify -> persist for one claimed video."""
        video_id = video.video_id

        if not video.index_id:
            await self._fail(video_id, "index_id is missing", correlation_id)
            return False

        try:
            text = await self.api.generate_metadata_text(video_id)
            if not text or not text.strip():
                await self._fail(video_id, "No hashtags were generated", correlation_id)
                return False

            metadata = classify(text)
            persisted = await self.api.persist_metadata(video_id, video.index_id, metadata.as_dict())
        except Exception as e:
            await self._fail(video_id, str(e) or type(e).__name__, correlation_id)
            return False

        if not persisted:
            await self._fail(video_id, "Metadata update was rejected", correlation_id)
            return False

        await self._settle(video_id, ProcessingStatus.PROCESSED)
        processed_counter.add(1)
        log_with_context(
            logger,
            "info",
            f"Metadata stored for {video_id}",
            correlation_id=correlation_id,
            video_id=video_id,
        )

        await self._notify(video_id, metadata)
        if self.embedding_storer is not None:
            task = asyncio.create_task(self._store_embedding(video_id, video.index_id))
            self._storage_tasks.add(task)
            task.add_done_callback(self._storage_tasks.discard)
        return True

    async def _store_embedding(self, video_id: str, index_id: str) -> None:
        stored = await self.embedding_storer.store_embedding(video_id, index_id)
        if not stored.success:
            logger.warning(
                f"Embedding storage for {video_id} failed after {stored.attempts} "
                f"attempts: {stored.message}"
            )

    async def _notify(self, video_id: str, metadata: ClassifiedMetadata) -> None:
        if self.on_complete is None:
            return
        try:
            outcome = self.on_complete(video_id, metadata)
            if asyncio.iscoroutine(outcome):
                await outcome
        except Exception:
            logger.exception(f"Completion callback failed for {video_id}")
