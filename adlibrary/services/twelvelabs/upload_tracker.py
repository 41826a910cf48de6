"""Tracks upload tasks so ingestion can skip videos that are still indexing."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from .models import IndexingTask

logger = logging.getLogger(__name__)

READY_STATUS = "ready"


class IndexingStatusSource(Protocol):
    async def get_indexing_status(self, task_id: str) -> str:
        ...


@dataclass
class UploadTask:
    video_id: str
    task_id: str
    status: str = "pending"

    @property
    def is_ready(self) -> bool:
        return self.status == READY_STATUS


class UploadTracker:
    """Remembers upload tasks by video id.

    A video is considered mid-indexing while its task status is anything
    other than "ready". Untracked videos are not indexing.
    """

    def __init__(self):
        self._tasks: dict[str, UploadTask] = {}

    def track(self, video_id: str, task_id: str, status: str = "pending") -> UploadTask:
        task = UploadTask(video_id=video_id, task_id=task_id, status=status)
        self._tasks[video_id] = task
        return task

    def track_tasks(self, tasks: Iterable[IndexingTask]) -> int:
        """Track listed upload tasks; tasks without a video id are ignored."""
        tracked = 0
        for task in tasks:
            if not task.video_id:
                continue
            self.track(task.video_id, task.id, task.status or "pending")
            tracked += 1
        return tracked

    def update(self, video_id: str, status: str) -> Optional[UploadTask]:
        task = self._tasks.get(video_id)
        if task is None:
            return None
        if task.status != status:
            logger.info(f"Upload task {task.task_id} for {video_id}: {task.status} -> {status}")
        task.status = status
        return task

    def is_indexing(self, video_id: str) -> bool:
        task = self._tasks.get(video_id)
        return task is not None and not task.is_ready

    def pending(self) -> list[UploadTask]:
        return [t for t in self._tasks.values() if not t.is_ready]

    async def refresh(self, source: IndexingStatusSource) -> list[str]:
        """Poll every pending task once.

        Returns:
            Video ids whose task became ready during this refresh
        """
        became_ready = []
        for task in self.pending():
            status = await source.get_indexing_status(task.task_id)
            self.update(task.video_id, status)
            if task.is_ready:
                became_ready.append(task.video_id)
        return became_ready
