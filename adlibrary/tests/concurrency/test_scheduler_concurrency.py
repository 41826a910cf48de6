"""Tests for bounded concurrency in metadata ingestion.

Tests verify:
- No more than `limit` videos are ever Processing at once
- Groups are barriers: a group fully settles before the next starts
- Overlapping passes never claim the same video twice
- A slow or failing video does not stall or break its siblings
"""

import asyncio

import pytest

from adlibrary.lib.errors import UpstreamError
from adlibrary.services.ingestion import (
    MetadataIngestionScheduler,
    ProcessingStatus,
    VideoSummary,
)
from adlibrary.services.tests.fakes import FakeMetadataApi


# ============ Markers ============

pytestmark = [pytest.mark.concurrency, pytest.mark.ingestion]


def _videos(count: int) -> list[VideoSummary]:
    return [VideoSummary(video_id=f"video_{i:05d}", index_id="ads-index") for i in range(count)]


# ============ Bounded Concurrency ============


@pytest.mark.asyncio
@pytest.mark.parametrize("count,limit", [(25, 10), (7, 3), (4, 1), (3, 10)])
async def test_processing_never_exceeds_limit(count, limit):
    """Test that at most `limit` videos are Processing at any time."""
    observed: list[int] = []
    scheduler: MetadataIngestionScheduler

    api = FakeMetadataApi(delay=0.005, on_generate=lambda _: observed.append(scheduler.processing_count()))
    scheduler = MetadataIngestionScheduler(api, cooldown_seconds=0)

    report = await scheduler.run(_videos(count), limit=limit)

    assert len(report.processed) == count
    assert max(observed) <= limit
    assert api.max_concurrent == min(count, limit)
    assert scheduler.processing_count() == 0


@pytest.mark.asyncio
async def test_groups_are_barriers():
    """Test that the next group only starts after the whole previous group settled."""
    release = asyncio.Event()
    started: list[str] = []
    api = FakeMetadataApi()
    original_generate = api.generate_metadata_text

    async def generate(video_id):
        started.append(video_id)
        if video_id == "video_00000":
            await release.wait()
        return await original_generate(video_id)

    api.generate_metadata_text = generate
    scheduler = MetadataIngestionScheduler(api, cooldown_seconds=0)

    task = asyncio.create_task(scheduler.run(_videos(4), limit=2))
    for _ in range(20):
        await asyncio.sleep(0)

    # video_00001 finished, but the group is held by video_00000
    assert started == ["video_00000", "video_00001"]
    assert scheduler.status_of("video_00001") == ProcessingStatus.PROCESSED
    assert scheduler.status_of("video_00002") == ProcessingStatus.NOT_STARTED

    release.set()
    report = await task

    assert len(report.processed) == 4
    assert started[2:] == ["video_00002", "video_00003"]


@pytest.mark.asyncio
async def test_failure_does_not_cancel_siblings():
    """Test that a failing video leaves the rest of its group running."""
    api = FakeMetadataApi(
        hashtags={"video_00001": UpstreamError("generation failed")},
        delay=0.005,
    )
    scheduler = MetadataIngestionScheduler(api, cooldown_seconds=0)

    report = await scheduler.run(_videos(5), limit=5)

    assert report.failed == ["video_00001"]
    assert len(report.processed) == 4
    assert len(api.persist_calls) == 4


@pytest.mark.asyncio
async def test_concurrent_claims_are_exclusive():
    """Test that concurrent claim attempts for the same id succeed once."""
    scheduler = MetadataIngestionScheduler(FakeMetadataApi(), cooldown_seconds=0)

    results = await asyncio.gather(*(scheduler._claim("video_00000") for _ in range(10)))

    assert results.count(True) == 1
    assert scheduler.in_flight == {"video_00000"}
    assert scheduler.status_of("video_00000") == ProcessingStatus.PROCESSING


@pytest.mark.asyncio
async def test_overlapping_schedulers_share_nothing():
    """Test that separate schedulers each process their own pass in parallel."""
    api = FakeMetadataApi(delay=0.005)
    first = MetadataIngestionScheduler(api, cooldown_seconds=0)
    second = MetadataIngestionScheduler(api, cooldown_seconds=0)

    reports = await asyncio.gather(
        first.run(_videos(6)[:3], limit=3),
        second.run(_videos(6)[3:], limit=3),
    )

    assert [len(r.processed) for r in reports] == [3, 3]
    assert len(api.generate_calls) == 6
    assert len(set(api.generate_calls)) == 6
