"""Unit tests for MetadataIngestionScheduler.

Tests verify:
- Eligibility: processed, in-flight, indexing and already-tagged videos are not generated
- Lifecycle records for every observed video
- Failure isolation between siblings
- Completion callback, embedding storage and correlation id hooks
- Re-entrancy guard and cooldown
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from adlibrary.lib.errors import UpstreamError, ValidationError
from adlibrary.lib.logging_config import CorrelationFilter
from adlibrary.services.ingestion import (
    MetadataIngestionScheduler,
    ProcessingStatus,
    StoreResult,
    VideoSummary,
)
from adlibrary.services.tagging import ClassifiedMetadata
from adlibrary.services.tests.fakes import FakeIndexingChecker, FakeMetadataApi

pytestmark = pytest.mark.ingestion


def _videos(*ids: str, index_id: str = "ads-index") -> list[VideoSummary]:
    return [VideoSummary(video_id=video_id, index_id=index_id) for video_id in ids]


def _scheduler(api, **kwargs) -> MetadataIngestionScheduler:
    kwargs.setdefault("cooldown_seconds", 0)
    return MetadataIngestionScheduler(api, **kwargs)


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


# =============================================================================
# Happy path
# =============================================================================


class TestRun:
    """Tests for a normal ingestion pass."""

    @pytest.mark.unit
    async def test_processes_every_eligible_video(self, fake_api):
        scheduler = _scheduler(fake_api)

        report = await scheduler.run(_videos("v1", "v2", "v3"), limit=2)

        assert sorted(report.processed) == ["v1", "v2", "v3"]
        assert report.failed == []
        assert report.skipped == []
        assert report.suppressed is False
        assert all(scheduler.status_of(v) == ProcessingStatus.PROCESSED for v in ("v1", "v2", "v3"))
        assert scheduler.processed == {"v1", "v2", "v3"}
        assert scheduler.in_flight == set()

    @pytest.mark.unit
    async def test_persists_classified_metadata_once(self, fake_api):
        scheduler = _scheduler(fake_api)

        await scheduler.run(_videos("v1"), limit=10)

        assert fake_api.persist_calls == [
            (
                "v1",
                "ads-index",
                {
                    "source": "",
                    "sector": "tech",
                    "emotions": "exciting",
                    "brands": "adidas",
                    "locations": "newyork",
                    "demographics": "male",
                },
            )
        ]

    @pytest.mark.unit
    async def test_processed_ids_never_revisited(self, fake_api):
        scheduler = _scheduler(fake_api)

        await scheduler.run(_videos("v1", "v2"), limit=10)
        report = await scheduler.run(_videos("v1", "v2", "v3"), limit=10)

        assert report.processed == ["v3"]
        assert fake_api.generate_calls.count("v1") == 1
        assert fake_api.generate_calls.count("v2") == 1

    @pytest.mark.unit
    async def test_duplicate_ids_in_one_pass_processed_once(self, fake_api):
        scheduler = _scheduler(fake_api)

        report = await scheduler.run(_videos("v1", "v1", "v1"), limit=3)

        assert report.processed == ["v1"]
        assert fake_api.generate_calls == ["v1"]

    @pytest.mark.unit
    async def test_empty_input(self, fake_api):
        report = await _scheduler(fake_api).run([], limit=10)

        assert report.total == 0
        assert fake_api.generate_calls == []

    @pytest.mark.unit
    @pytest.mark.parametrize("limit", [0, -1])
    async def test_limit_below_one_raises(self, fake_api, limit):
        with pytest.raises(ValidationError):
            await _scheduler(fake_api).run(_videos("v1"), limit=limit)

    @pytest.mark.unit
    async def test_default_limit_from_constructor(self):
        api = FakeMetadataApi(delay=0.01)
        scheduler = _scheduler(api, limit=2)

        await scheduler.run(_videos(*[f"v{i}" for i in range(6)]))

        assert api.max_concurrent == 2


# =============================================================================
# Eligibility
# =============================================================================


class TestEligibility:
    """Tests for which videos reach generation."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "field",
        ["source", "sector", "topic_category", "emotions", "brands", "locations"],
    )
    async def test_video_with_metadata_is_skipped(self, fake_api, field):
        scheduler = _scheduler(fake_api)
        video = VideoSummary("tagged", "ads-index", user_metadata={field: "something"})

        report = await scheduler.run([video], limit=10)

        assert report.skipped == ["tagged"]
        assert fake_api.generate_calls == []
        assert scheduler.status_of("tagged") == ProcessingStatus.SKIPPED_HAS_METADATA
        assert "tagged" in scheduler.processed

    @pytest.mark.unit
    async def test_blank_or_demographics_only_metadata_is_eligible(self, fake_api):
        scheduler = _scheduler(fake_api)
        videos = [
            VideoSummary("blank", "ads-index", user_metadata={"sector": "  ", "brands": ""}),
            VideoSummary("demo", "ads-index", user_metadata={"demographics": "male"}),
        ]

        report = await scheduler.run(videos, limit=10)

        assert sorted(report.processed) == ["blank", "demo"]

    @pytest.mark.unit
    async def test_indexing_video_keeps_its_state(self, fake_api):
        indexing = FakeIndexingChecker({"uploading"})
        scheduler = _scheduler(fake_api, indexing=indexing)

        report = await scheduler.run(_videos("uploading", "ready"), limit=10)

        assert report.processed == ["ready"]
        assert "uploading" not in fake_api.generate_calls
        assert scheduler.status_of("uploading") == ProcessingStatus.NOT_STARTED

        indexing.indexing.clear()
        report = await scheduler.run(_videos("uploading", "ready"), limit=10)

        assert report.processed == ["uploading"]

    @pytest.mark.unit
    async def test_in_flight_video_not_claimed_twice(self, fake_api):
        scheduler = _scheduler(fake_api)
        scheduler.in_flight.add("busy")

        report = await scheduler.run(_videos("busy", "free"), limit=10)

        assert report.processed == ["free"]
        assert "busy" not in fake_api.generate_calls


# =============================================================================
# Failure isolation
# =============================================================================


class TestFailureIsolation:
    """Tests that one failing video never affects its siblings."""

    @pytest.mark.unit
    async def test_generation_error_marks_only_that_video(self):
        api = FakeMetadataApi(hashtags={"bad": UpstreamError("model timeout", status_code=504)})
        scheduler = _scheduler(api)

        report = await scheduler.run(_videos("good1", "bad", "good2"), limit=3)

        assert report.failed == ["bad"]
        assert sorted(report.processed) == ["good1", "good2"]
        record = scheduler.records["bad"]
        assert record.status == ProcessingStatus.FAILED
        assert "model timeout" in record.error
        assert "bad" not in scheduler.in_flight
        assert "bad" not in scheduler.processed

    @pytest.mark.unit
    async def test_empty_hashtags_fail(self):
        api = FakeMetadataApi(hashtags={"empty": "  \n "})
        scheduler = _scheduler(api)

        report = await scheduler.run(_videos("empty"), limit=1)

        assert report.failed == ["empty"]
        assert api.persist_calls == []

    @pytest.mark.unit
    async def test_rejected_persist_fails(self):
        api = FakeMetadataApi(persist_results={"rejected": False})
        scheduler = _scheduler(api)

        report = await scheduler.run(_videos("rejected", "ok"), limit=2)

        assert report.failed == ["rejected"]
        assert report.processed == ["ok"]
        assert scheduler.status_of("rejected") == ProcessingStatus.FAILED

    @pytest.mark.unit
    async def test_persist_error_fails(self):
        api = FakeMetadataApi(persist_results={"boom": RuntimeError("write failed")})
        scheduler = _scheduler(api)

        report = await scheduler.run(_videos("boom", "ok"), limit=2)

        assert report.failed == ["boom"]
        assert report.processed == ["ok"]

    @pytest.mark.unit
    async def test_missing_index_id_fails(self, fake_api):
        scheduler = _scheduler(fake_api)

        report = await scheduler.run([VideoSummary("orphan")], limit=1)

        assert report.failed == ["orphan"]
        assert fake_api.generate_calls == []

    @pytest.mark.unit
    async def test_failed_video_retried_on_next_pass(self):
        api = FakeMetadataApi(hashtags={"flaky": UpstreamError("temporary")})
        scheduler = _scheduler(api)

        await scheduler.run(_videos("flaky"), limit=1)
        api.hashtags.clear()
        report = await scheduler.run(_videos("flaky"), limit=1)

        assert report.processed == ["flaky"]
        assert scheduler.status_of("flaky") == ProcessingStatus.PROCESSED


# =============================================================================
# Hooks
# =============================================================================


class TestHooks:
    """Tests for the completion callback and embedding storage."""

    @pytest.mark.unit
    async def test_callback_fires_after_each_successful_persist(self):
        api = FakeMetadataApi(persist_results={"rejected": False})
        seen: list[tuple[str, ClassifiedMetadata]] = []

        def on_complete(video_id, metadata):
            assert video_id in api.persisted
            seen.append((video_id, metadata))

        scheduler = _scheduler(api, on_complete=on_complete)
        await scheduler.run(_videos("a", "rejected", "b"), limit=3)

        assert sorted(v for v, _ in seen) == ["a", "b"]
        assert all(m.sector == "tech" for _, m in seen)

    @pytest.mark.unit
    async def test_async_callback_awaited(self, fake_api):
        callback = AsyncMock()
        scheduler = _scheduler(fake_api, on_complete=callback)

        await scheduler.run(_videos("a"), limit=1)

        callback.assert_awaited_once()
        assert callback.await_args.args[0] == "a"

    @pytest.mark.unit
    async def test_callback_error_does_not_change_outcome(self, fake_api):
        callback = MagicMock(side_effect=RuntimeError("ui gone"))
        scheduler = _scheduler(fake_api, on_complete=callback)

        report = await scheduler.run(_videos("a", "b"), limit=2)

        assert sorted(report.processed) == ["a", "b"]
        assert callback.call_count == 2

    @pytest.mark.unit
    async def test_callback_fires_before_group_finishes(self):
        api = FakeMetadataApi(hashtags={}, delay=0)
        slow_started = asyncio.Event()
        release_slow = asyncio.Event()
        completed: list[str] = []

        original_generate = api.generate_metadata_text

        async def generate(video_id):
            if video_id == "slow":
                slow_started.set()
                await release_slow.wait()
            return await original_generate(video_id)

        api.generate_metadata_text = generate

        def on_complete(video_id, metadata):
            completed.append(video_id)
            if video_id == "fast":
                release_slow.set()

        scheduler = _scheduler(api, on_complete=on_complete)
        await scheduler.run(_videos("slow", "fast"), limit=2)

        assert completed == ["fast", "slow"]

    @pytest.mark.unit
    async def test_embedding_storage_after_persist(self, fake_api):
        storer = MagicMock()
        storer.store_embedding = AsyncMock(return_value=StoreResult(success=False, message="no data", attempts=3))
        scheduler = _scheduler(fake_api, embedding_storer=storer)

        report = await scheduler.run(_videos("a"), limit=1)

        storer.store_embedding.assert_awaited_once_with("a", "ads-index")
        assert report.processed == ["a"]

    @pytest.mark.unit
    async def test_embedding_storage_does_not_hold_next_group(self):
        release_storage = asyncio.Event()

        def on_generate(video_id):
            if video_id == "b":
                release_storage.set()

        api = FakeMetadataApi(on_generate=on_generate)

        async def store_embedding(video_id, index_id):
            if video_id == "a":
                await release_storage.wait()
            return StoreResult.ok(1)

        storer = MagicMock()
        storer.store_embedding = AsyncMock(side_effect=store_embedding)
        scheduler = _scheduler(api, embedding_storer=storer)

        report = await asyncio.wait_for(scheduler.run(_videos("a", "b"), limit=1), timeout=2)

        assert report.processed == ["a", "b"]
        assert storer.store_embedding.await_count == 2

    @pytest.mark.unit
    async def test_pass_waits_for_embedding_storage(self, fake_api):
        stored: list[str] = []

        async def store_embedding(video_id, index_id):
            await asyncio.sleep(0.01)
            stored.append(video_id)
            return StoreResult.ok(1)

        storer = MagicMock()
        storer.store_embedding = AsyncMock(side_effect=store_embedding)
        scheduler = _scheduler(fake_api, embedding_storer=storer)

        await scheduler.run(_videos("a", "b"), limit=1)

        assert sorted(stored) == ["a", "b"]

    @pytest.mark.unit
    async def test_correlation_id_set_for_the_pass(self):
        correlation_filter = CorrelationFilter()
        seen: list = []
        api = FakeMetadataApi(on_generate=lambda video_id: seen.append(correlation_filter.correlation_id))
        scheduler = _scheduler(api, correlation_filter=correlation_filter)

        report = await scheduler.run(_videos("a", "b"), limit=2)

        assert seen == [report.correlation_id, report.correlation_id]
        assert correlation_filter.correlation_id is None


# =============================================================================
# Re-entrancy guard
# =============================================================================


class TestReentrancy:
    """Tests for suppression while running and during cooldown."""

    @pytest.mark.unit
    async def test_pass_suppressed_while_running(self):
        release = asyncio.Event()
        api = FakeMetadataApi()
        original_generate = api.generate_metadata_text

        async def generate(video_id):
            await release.wait()
            return await original_generate(video_id)

        api.generate_metadata_text = generate
        scheduler = _scheduler(api)

        first = asyncio.create_task(scheduler.run(_videos("a"), limit=1))
        await asyncio.sleep(0)
        second = await scheduler.run(_videos("b"), limit=1)
        release.set()
        first_report = await first

        assert second.suppressed is True
        assert second.total == 0
        assert first_report.processed == ["a"]

    @pytest.mark.unit
    async def test_cooldown_window(self, fake_api):
        clock = FakeClock()
        scheduler = MetadataIngestionScheduler(fake_api, cooldown_seconds=2.0, clock=clock)

        await scheduler.run(_videos("a"), limit=1)

        clock.now += 1.5
        assert (await scheduler.run(_videos("b"), limit=1)).suppressed is True

        clock.now += 0.6
        report = await scheduler.run(_videos("b"), limit=1)
        assert report.suppressed is False
        assert report.processed == ["b"]

    @pytest.mark.unit
    async def test_running_flag_cleared_after_error(self, fake_api):
        scheduler = _scheduler(fake_api)

        scheduler.indexing = MagicMock()
        scheduler.indexing.is_indexing.side_effect = RuntimeError("tracker broken")

        with pytest.raises(RuntimeError):
            await scheduler.run(_videos("a"), limit=1)

        assert scheduler.is_suppressed() is False
