"""
Pytest configuration and fixtures for adlibrary/ tests.

Provides:
- Environment setup
- Mock vector store and video API fixtures for CLI tests
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from adlibrary.services.twelvelabs import TaskPage


# ============ Environment Setup ============


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    os.environ.setdefault("TWELVELABS_API_KEY", "test-key")
    os.environ.setdefault("QDRANT_URL", "http://localhost:6333")
    yield


# ============ Collaborator Mocks ============


@pytest.fixture
def mock_twelvelabs_client():
    """Mock TwelveLabsClient usable as an async context manager."""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.list_videos = AsyncMock()
    client.generate_metadata_text = AsyncMock(return_value="#female #beauty #happy #seoul #fentybeauty")
    client.persist_metadata = AsyncMock(return_value=True)
    client.get_video = AsyncMock()
    client.list_indexing_tasks = AsyncMock(return_value=TaskPage())
    return client
