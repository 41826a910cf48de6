"""Shared pytest fixtures for services tests."""

from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from adlibrary.services.tests.fakes import TEST_DIMENSION, FakeMetadataApi, clip_record, unit_vector
from adlibrary.services.vectors import InMemoryVectorStore

# =============================================================================
# Mock Factories - Create configurable mocks for external dependencies
# =============================================================================

def _mock_point(point_id: str, score: float, payload: dict[str, Any], vector: Optional[list[float]] = None) -> MagicMock:
    point = MagicMock()
    point.id = point_id
    point.score = score
    point.payload = payload
    point.vector = vector
    return point


def create_mock_qdrant_client(
    collection_exists: bool = True,
    search_results: Optional[list[dict]] = None,
    scroll_results: Optional[list[dict]] = None,
) -> MagicMock:
    """Create a mock QdrantClient.

    Args:
        collection_exists: Whether the collection should appear to exist
        search_results: Points returned by query_points (id, score, payload, vector)
        scroll_results: Points returned by scroll (id, payload, vector)

    Returns:
        Mock client that can be used in place of QdrantClient
    """
    mock_client = MagicMock()

    collection = MagicMock()
    collection.name = "video_clips"
    collections = MagicMock()
    collections.collections = [collection] if collection_exists else []
    mock_client.get_collections.return_value = collections

    query_response = MagicMock()
    query_response.points = [
        _mock_point(r["id"], r.get("score", 0.0), r.get("payload", {}), r.get("vector"))
        for r in (search_results or [])
    ]
    mock_client.query_points.return_value = query_response

    scrolled = [
        _mock_point(r["id"], 0.0, r.get("payload", {}), r.get("vector"))
        for r in (scroll_results or [])
    ]
    mock_client.scroll.return_value = (scrolled, None)

    return mock_client


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mock_qdrant_client():
    """Mock Qdrant client with an existing, empty collection."""
    return create_mock_qdrant_client()


@pytest.fixture
def fake_api():
    """Fake video API returning the same hashtags for every video."""
    return FakeMetadataApi()


@pytest.fixture
def vector_store():
    """Empty in-memory vector store with a small dimension."""
    return InMemoryVectorStore(dimension=TEST_DIMENSION)


@pytest.fixture
async def seeded_store(vector_store):
    """Store with one content video (2 clips) and three ads.

    - content-1 clips point along axes 0 and 1
    - ad-a matches axis 0 exactly, and axis 1 loosely
    - ad-b matches axis 1 closely
    - ad-c is orthogonal to both clips
    """
    await vector_store.upsert([
        clip_record("content-1", "content-index", 1, unit_vector(TEST_DIMENSION, 0)),
        clip_record("content-1", "content-index", 2, unit_vector(TEST_DIMENSION, 1)),
        clip_record("ad-a", "ads-index", 1, unit_vector(TEST_DIMENSION, 0)),
        clip_record("ad-a", "ads-index", 2, unit_vector(TEST_DIMENSION, 1, weight=0.2, spill=1.0)),
        clip_record("ad-b", "ads-index", 1, unit_vector(TEST_DIMENSION, 1, weight=1.0, spill=0.3)),
        clip_record("ad-c", "ads-index", 1, unit_vector(TEST_DIMENSION, 3)),
    ])
    return vector_store
