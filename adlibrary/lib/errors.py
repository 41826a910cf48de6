"""Error taxonomy shared by the ingestion and similarity services.

The classes extend the builtin exceptions the services already raise
(ValueError for bad input, ConnectionError for backend failures), so
callers catching the builtins keep working.
"""

from typing import Optional


class ValidationError(ValueError):
    """A required identifier or argument is missing or invalid."""


class UpstreamError(ConnectionError):
    """A network or backend failure from the video API or vector store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DataShapeError(ValueError):
    """Embedding segments or vector values are malformed or missing."""
