"""Async HTTP client for the video-understanding API.

Covers the calls the ingestion and embedding steps depend on:
- hashtag generation for a video
- persisting user metadata
- video details (optionally with embedding segments)
- paged video listing
- upload task listing and indexing status

Transport failures surface as UpstreamError; metadata persistence reports
an unsuccessful response as False instead.
"""

import logging
from typing import Any, Optional

import httpx

from adlibrary.lib.config_manager import config
from adlibrary.lib.errors import UpstreamError, ValidationError

from .config import TwelveLabsConfig
from .models import TaskPage, VideoDetails, VideoPage

logger = logging.getLogger(__name__)


class TwelveLabsClient:
    """Client for the video API.

    Example:
        >>> async with TwelveLabsClient() as client:
        ...     text = await client.generate_metadata_text("video-123")
    """

    def __init__(
        self,
        client_config: Optional[TwelveLabsConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            client_config: Connection settings (defaults from config)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        if client_config is None:
            client_config = TwelveLabsConfig(
                api_url=config.get("TWELVELABS_API_URL"),
                api_key=config.get("TWELVELABS_API_KEY"),
                timeout=config.get("HTTP_TIMEOUT_SECONDS"),
            )
        self.config = client_config

        headers = {"Accept": "application/json"}
        if client_config.api_key:
            headers["x-api-key"] = client_config.api_key

        self._client = httpx.AsyncClient(
            base_url=client_config.api_url.rstrip("/"),
            headers=headers,
            timeout=client_config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "TwelveLabsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamError(f"{method} {path} failed: {e}") from e

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        response = await self._request("GET", path, params=params)
        if response.is_error:
            raise UpstreamError(
                f"GET {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response.json()

    async def generate_metadata_text(self, video_id: str) -> str:
        """Ask the model for hashtag text describing a video.

        Returns:
            Raw hashtag text, "" when the model returned nothing

        Raises:
            UpstreamError: On transport failure or non-2xx response
        """
        if not video_id:
            raise ValidationError("video_id is required")

        data = await self._get_json("/generate", {"videoId": video_id})
        return data.get("data") or ""

    async def persist_metadata(
        self, video_id: str, index_id: str, metadata: dict[str, str]
    ) -> bool:
        """Write user metadata for a video.

        Returns:
            True on success; False on a non-2xx response or an explicit
            {"success": false} body

        Raises:
            UpstreamError: On transport failure
        """
        payload = {"videoId": video_id, "indexId": index_id, "metadata": metadata}
        response = await self._request("PUT", "/videos/metadata", json=payload)

        if response.is_error:
            logger.warning(
                f"Metadata update for {video_id} returned {response.status_code}: {response.text}"
            )
            return False

        if not response.content.strip():
            return True
        try:
            body = response.json()
        except ValueError:
            return True
        if isinstance(body, dict):
            return body.get("success") is not False
        return True

    async def get_video(self, video_id: str, index_id: str, embed: bool = False) -> VideoDetails:
        """Fetch video details, with embedding segments when embed is True."""
        if not video_id or not index_id:
            raise ValidationError("video_id and index_id are required")

        data = await self._get_json(
            f"/videos/{video_id}",
            {"indexId": index_id, "embed": "true" if embed else "false"},
        )
        return VideoDetails.model_validate(data)

    async def list_videos(self, index_id: str, page: int = 1) -> VideoPage:
        """Fetch one page of videos in an index."""
        if not index_id:
            raise ValidationError("index_id is required")

        data = await self._get_json("/videos", {"page": page, "index_id": index_id})
        return VideoPage.model_validate(data)

    async def get_indexing_status(self, task_id: str) -> str:
        """Return the indexing status of an upload task ("ready" when done)."""
        data = await self._get_json("/videos/indexing-status", {"taskId": task_id})
        return str(data.get("status") or "")

    async def list_indexing_tasks(self, index_id: str, page: int = 1) -> TaskPage:
        """Fetch one page of upload tasks for an index, newest first."""
        if not index_id:
            raise ValidationError("index_id is required")

        data = await self._get_json("/tasks", {"index_id": index_id, "page": page})
        return TaskPage.model_validate(data)
