"""Ingestion data models.

Defines the data structures for metadata ingestion:
- ProcessingStatus: Lifecycle state of a video in the scheduler
- VideoProcessingRecord: Per-video state owned by the scheduler
- VideoSummary: The scheduler's view of a candidate video
- IngestionReport: Aggregate outcome of one ingestion pass
- StoreResult: Outcome of embedding storage
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ProcessingStatus(str, Enum):
    NOT_STARTED = "not_started"
    PROCESSING = "processing"
    PROCESSED = "processed"
    SKIPPED_HAS_METADATA = "skipped_has_metadata"
    FAILED = "failed"


# Fields whose presence means a video already carries metadata.
# "topic_category" is the name older uploads used for sector.
POPULATED_METADATA_FIELDS = ("source", "sector", "topic_category", "emotions", "brands", "locations")


@dataclass
class VideoProcessingRecord:
    """Lifecycle record for one video.

    Attributes:
        video_id: Video being tracked
        status: Current lifecycle state
        error: Last error message when failed
        updated_at: Time of the last transition
    """

    video_id: str
    status: ProcessingStatus = ProcessingStatus.NOT_STARTED
    error: Optional[str] = None
    updated_at: datetime = field(default_factory=datetime.now)

    def transition(self, status: ProcessingStatus, error: Optional[str] = None) -> None:
        self.status = status
        self.error = error
        self.updated_at = datetime.now()


@dataclass
class VideoSummary:
    """A candidate video with its currently known user metadata."""

    video_id: str
    index_id: Optional[str] = None
    user_metadata: dict[str, Any] = field(default_factory=dict)

    def has_metadata(self) -> bool:
        """True when any of the classified fields is already populated."""
        for key in POPULATED_METADATA_FIELDS:
            value = self.user_metadata.get(key)
            if isinstance(value, str):
                if value.strip():
                    return True
            elif value:
                return True
        return False


@dataclass
class IngestionReport:
    """Outcome of one ingestion pass.

    Attributes:
        processed: Ids whose metadata was generated and persisted
        skipped: Ids skipped because they already had metadata
        failed: Ids whose generation or persistence failed
        suppressed: True when the pass did not run (re-entrancy guard)
        correlation_id: Id tying together the log lines of the pass
    """

    processed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    suppressed: bool = False
    correlation_id: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.skipped) + len(self.failed)


@dataclass
class StoreResult:
    """Outcome of storing a video's embeddings.

    Attributes:
        success: Whether the vectors were stored
        message: Error or status message
        attempts: Attempts made (filled in by the retry loop)
        stored: Number of vectors upserted
    """

    success: bool
    message: Optional[str] = None
    attempts: int = 0
    stored: int = 0

    @classmethod
    def ok(cls, stored: int, message: Optional[str] = None) -> "StoreResult":
        """Create a successful result."""
        return cls(success=True, message=message, stored=stored)

    @classmethod
    def fail(cls, message: str) -> "StoreResult":
        """Create a failed result."""
        return cls(success=False, message=message)
