"""Progress events emitted while a sync run executes."""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class SyncProgressEvent(str, Enum):
    """Events reported during a sync run."""

    RUN_START = "run_start"
    TASK_STARTED = "task_started"
    TASK_SUCCEEDED = "task_succeeded"
    TASK_FAILED = "task_failed"
    TASK_SKIPPED = "task_skipped"
    RUN_COMPLETE = "run_complete"


@dataclass
class SyncProgressInfo:
    """Snapshot of run progress passed to the callback."""

    event: SyncProgressEvent
    key: str = ""
    remote_url: str = ""
    message: str = ""
    tasks_total: int = 0
    tasks_done: int = 0
    tasks_succeeded: int = 0
    tasks_failed: int = 0
    tasks_skipped: int = 0
    bytes_uploaded: int = 0


class SyncProgressTracker:
    """Collects progress counters and forwards events to a callback.

    Safe to call from several worker threads.
    """

    def __init__(
        self, callback: Optional[Callable[[SyncProgressInfo], None]] = None
    ):
        self.callback = callback
        self._lock = threading.Lock()
        self.tasks_total = 0
        self.tasks_succeeded = 0
        self.tasks_failed = 0
        self.tasks_skipped = 0
        self.bytes_uploaded = 0

    @property
    def tasks_done(self) -> int:
        return self.tasks_succeeded + self.tasks_failed + self.tasks_skipped

    def _emit(
        self,
        event: SyncProgressEvent,
        key: str = "",
        remote_url: str = "",
        message: str = "",
    ) -> None:
        # Caller holds the lock
        if self.callback is None:
            return
        info = SyncProgressInfo(
            event=event,
            key=key,
            remote_url=remote_url,
            message=message,
            tasks_total=self.tasks_total,
            tasks_done=self.tasks_done,
            tasks_succeeded=self.tasks_succeeded,
            tasks_failed=self.tasks_failed,
            tasks_skipped=self.tasks_skipped,
            bytes_uploaded=self.bytes_uploaded,
        )
        self.callback(info)

    def on_run_start(self, tasks_total: int) -> None:
        with self._lock:
            self.tasks_total = tasks_total
            self._emit(SyncProgressEvent.RUN_START)

    def on_task_started(self, key: str, remote_url: str) -> None:
        with self._lock:
            self._emit(SyncProgressEvent.TASK_STARTED, key, remote_url)

    def on_task_succeeded(self, key: str, remote_url: str, size: int = 0) -> None:
        with self._lock:
            self.tasks_succeeded += 1
            self.bytes_uploaded += size
            self._emit(SyncProgressEvent.TASK_SUCCEEDED, key, remote_url)

    def on_task_failed(self, key: str, remote_url: str, message: str) -> None:
        with self._lock:
            self.tasks_failed += 1
            self._emit(SyncProgressEvent.TASK_FAILED, key, remote_url, message)

    def on_task_skipped(self, key: str, remote_url: str, message: str) -> None:
        with self._lock:
            self.tasks_skipped += 1
            self._emit(SyncProgressEvent.TASK_SKIPPED, key, remote_url, message)

    def on_run_complete(self) -> None:
        with self._lock:
            self._emit(SyncProgressEvent.RUN_COMPLETE)
