"""Default configuration values for the ads library workers.

All hardcoded defaults live here. The workers should be fully functional
with these defaults (minus external API calls requiring keys).

Config hierarchy: .env → these defaults
"""

from typing import Any

# =============================================================================
# Configuration Defaults
# =============================================================================

DEFAULTS: dict[str, Any] = {
    # -------------------------------------------------------------------------
    # Video understanding API (hashtag generation, metadata, embeddings)
    # -------------------------------------------------------------------------
    "TWELVELABS_API_URL": "https://api.twelvelabs.io/v1.3",
    "TWELVELABS_API_KEY": "",
    "ADS_INDEX_ID": "",
    "HTTP_TIMEOUT_SECONDS": 60.0,

    # -------------------------------------------------------------------------
    # Vector store - Qdrant
    # -------------------------------------------------------------------------
    "QDRANT_URL": "http://localhost:6333",
    "QDRANT_API_KEY": "",
    "QDRANT_COLLECTION": "video_clips",
    "VECTOR_DIMENSION": 1024,

    # -------------------------------------------------------------------------
    # Metadata ingestion
    # -------------------------------------------------------------------------
    "METADATA_CONCURRENCY_LIMIT": 10,
    "REFRESH_COOLDOWN_SECONDS": 2.0,

    # -------------------------------------------------------------------------
    # Embedding storage retry
    # -------------------------------------------------------------------------
    "EMBEDDING_MAX_ATTEMPTS": 3,
    "EMBEDDING_BASE_DELAY": 3.0,

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------
    "LOG_LEVEL": "INFO",
    "OTLP_ENDPOINT": "",
}


# =============================================================================
# Config Categories
# =============================================================================

CONFIG_CATEGORIES = {
    "video_api": [
        "TWELVELABS_API_URL",
        "TWELVELABS_API_KEY",
        "ADS_INDEX_ID",
        "HTTP_TIMEOUT_SECONDS",
    ],
    "vector_store": [
        "QDRANT_URL",
        "QDRANT_API_KEY",
        "QDRANT_COLLECTION",
        "VECTOR_DIMENSION",
    ],
    "ingestion": [
        "METADATA_CONCURRENCY_LIMIT",
        "REFRESH_COOLDOWN_SECONDS",
        "EMBEDDING_MAX_ATTEMPTS",
        "EMBEDDING_BASE_DELAY",
    ],
    "observability": [
        "LOG_LEVEL",
        "OTLP_ENDPOINT",
    ],
}


# =============================================================================
# Sensitive Keys (should be masked when displayed)
# =============================================================================

SENSITIVE_KEYS = {
    "TWELVELABS_API_KEY",
    "QDRANT_API_KEY",
}


def get_default(key: str) -> Any:
    """Get the default value for a config key.

    Args:
        key: Configuration key name

    Returns:
        Default value, or None if key not found
    """
    return DEFAULTS.get(key)


def is_sensitive(key: str) -> bool:
    """Check if a config key contains sensitive data."""
    return key in SENSITIVE_KEYS


def get_category(key: str) -> str | None:
    """Get the category for a config key.

    Args:
        key: Configuration key name

    Returns:
        Category name, or None if not categorized
    """
    for category, keys in CONFIG_CATEGORIES.items():
        if key in keys:
            return category
    return None
