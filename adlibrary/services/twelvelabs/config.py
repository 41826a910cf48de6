"""Configuration for the video-understanding API client."""

from dataclasses import dataclass


@dataclass
class TwelveLabsConfig:
    """Connection settings for the video API.

    Attributes:
        api_url: Base URL of the API (no trailing slash)
        api_key: API key sent as the x-api-key header
        timeout: Request timeout in seconds
    """

    api_url: str = "https://api.twelvelabs.io/v1.3"
    api_key: str = ""
    timeout: float = 60.0
