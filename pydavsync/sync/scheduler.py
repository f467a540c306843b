"""Dependency-aware parallel execution of sync tasks."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..exceptions import DavGraphIntegrityError, DavSyncError, ErrorKind
from ..utils import DEFAULT_MAX_WORKERS
from .graph import TaskGraph
from .mapper import MappedTask, TaskKind
from .progress import SyncProgressTracker

logger = logging.getLogger(__name__)

TaskRunner = Callable[[MappedTask], Optional[int]]
"""Performs one task; returns the final status code or raises DavSyncError"""


class TaskStatus(str, Enum):
    """Lifecycle of a task during a run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    """Never ran because a dependency failed or was skipped"""

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.SKIPPED)


@dataclass(frozen=True)
class TaskOutcome:
    """Final state of one task."""

    key: str
    remote_url: str
    kind: TaskKind
    status: TaskStatus
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    status_code: Optional[int] = None
    elapsed: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "remote_url": self.remote_url,
            "kind": self.kind.value,
            "status": self.status.value,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
            "status_code": self.status_code,
            "elapsed": round(self.elapsed, 3),
        }


@dataclass(frozen=True)
class RunResult:
    """Aggregated outcome of a sync run."""

    outcomes: tuple[TaskOutcome, ...] = ()

    @property
    def success(self) -> bool:
        """True when no task failed."""
        return not self.failed

    @property
    def succeeded(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.status == TaskStatus.SUCCEEDED]

    @property
    def failed(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.status == TaskStatus.FAILED]

    @property
    def skipped(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.status == TaskStatus.SKIPPED]

    def outcome_for(self, key: str) -> TaskOutcome:
        for outcome in self.outcomes:
            if outcome.key == key:
                return outcome
        raise KeyError(key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total": len(self.outcomes),
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class TaskScheduler:
    """Runs a TaskGraph, starting each task once its dependencies succeeded.

    Independent tasks run concurrently on a thread pool. When a task fails,
    every task below it is marked skipped without running; unrelated tasks
    keep going. All status transitions happen under a single lock, and a
    task is submitted only by the thread that moved it to RUNNING.
    """

    def __init__(
        self,
        graph: TaskGraph,
        runner: TaskRunner,
        max_workers: Optional[int] = None,
        tracker: Optional[SyncProgressTracker] = None,
    ):
        """Initialize the scheduler.

        Args:
            graph: Tasks to run
            runner: Callable executing one task
            max_workers: Thread limit (None means one per task, up to 100)
            tracker: Optional progress tracker receiving task events
        """
        self.graph = graph
        self.runner = runner
        self.max_workers = max_workers
        self.tracker = tracker

        self._lock = threading.Lock()
        self._done = threading.Event()
        self._status: dict[str, TaskStatus] = {}
        self._outcomes: dict[str, TaskOutcome] = {}
        self._remaining = 0
        self._executor: Optional[ThreadPoolExecutor] = None

    def status_of(self, key: str) -> TaskStatus:
        with self._lock:
            return self._status[key]

    def run(self) -> RunResult:
        """Run every task to a terminal state.

        Returns:
            RunResult with one outcome per task, in graph order

        Raises:
            DavGraphIntegrityError: If the graph has tasks but none can start
        """
        total = len(self.graph)
        if self.tracker is not None:
            self.tracker.on_run_start(total)

        if total == 0:
            logger.debug("No tasks to run")
            if self.tracker is not None:
                self.tracker.on_run_complete()
            return RunResult()

        roots = self.graph.roots()
        if not roots:
            raise DavGraphIntegrityError("Task graph has no task without dependencies")

        self._status = {key: TaskStatus.PENDING for key in self.graph}
        self._outcomes = {}
        self._remaining = total
        self._done.clear()

        workers = self.max_workers or min(total, DEFAULT_MAX_WORKERS)
        logger.debug(f"Running {total} task(s) with up to {workers} worker(s)")
        start = time.time()

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="davsync"
        ) as executor:
            self._executor = executor
            with self._lock:
                ready = [key for key in roots if self._claim(key)]
            self._submit(ready)
            self._done.wait()
        self._executor = None

        result = RunResult(outcomes=tuple(self._outcomes[key] for key in self.graph))
        logger.debug(
            f"Run finished in {time.time() - start:.2f}s: "
            f"{len(result.succeeded)} succeeded, {len(result.failed)} failed, "
            f"{len(result.skipped)} skipped"
        )
        if self.tracker is not None:
            self.tracker.on_run_complete()
        return result

    def _claim(self, key: str) -> bool:
        """Move a task to RUNNING if it is eligible. Caller holds the lock."""
        if self._status[key] != TaskStatus.PENDING:
            return False
        for dependency in self.graph[key].dependencies:
            if self._status[dependency] != TaskStatus.SUCCEEDED:
                return False
        self._status[key] = TaskStatus.RUNNING
        return True

    def _submit(self, keys: list[str]) -> None:
        """Hand claimed tasks to the pool.

        A task the pool refuses is recorded as failed, so the run still
        reaches its end.
        """
        if self._executor is None:
            raise RuntimeError("Scheduler is not running")
        for key in keys:
            try:
                self._executor.submit(self._execute, key)
            except RuntimeError as e:
                task = self.graph[key].task
                self._complete(
                    TaskOutcome(
                        key=key,
                        remote_url=task.remote_url,
                        kind=task.kind,
                        status=TaskStatus.FAILED,
                        error_kind=ErrorKind.UNKNOWN,
                        message=f"Could not start task: {e}",
                    )
                )

    def _execute(self, key: str) -> None:
        task = self.graph[key].task
        logger.debug(f"Starting {task.kind.value}: {key}")

        start = time.time()
        try:
            if self.tracker is not None:
                self.tracker.on_task_started(key, task.remote_url)
            status_code = self.runner(task)
        except DavSyncError as e:
            outcome = TaskOutcome(
                key=key,
                remote_url=task.remote_url,
                kind=task.kind,
                status=TaskStatus.FAILED,
                error_kind=e.kind,
                message=str(e),
                status_code=getattr(e, "status_code", None),
                elapsed=time.time() - start,
            )
        except Exception as e:
            logger.debug(f"Unexpected error in task {key}", exc_info=True)
            outcome = TaskOutcome(
                key=key,
                remote_url=task.remote_url,
                kind=task.kind,
                status=TaskStatus.FAILED,
                error_kind=ErrorKind.UNKNOWN,
                message=f"Unexpected error: {e}",
                elapsed=time.time() - start,
            )
        else:
            outcome = TaskOutcome(
                key=key,
                remote_url=task.remote_url,
                kind=task.kind,
                status=TaskStatus.SUCCEEDED,
                status_code=status_code,
                elapsed=time.time() - start,
            )
        self._complete(outcome)

    def _complete(self, outcome: TaskOutcome) -> None:
        ready: list[str] = []
        skipped: list[TaskOutcome] = []

        with self._lock:
            self._record(outcome)
            if outcome.status == TaskStatus.SUCCEEDED:
                dependents = self.graph.dependents(outcome.key)
                ready = [key for key in dependents if self._claim(key)]
            else:
                skipped = self._skip_below(outcome)
            finished = self._remaining == 0

        try:
            self._report(outcome, skipped)
        finally:
            self._submit(ready)
            if finished:
                self._done.set()

    def _record(self, outcome: TaskOutcome) -> None:
        """Store a terminal outcome. Caller holds the lock."""
        self._status[outcome.key] = outcome.status
        self._outcomes[outcome.key] = outcome
        self._remaining -= 1

    def _skip_below(self, failed: TaskOutcome) -> list[TaskOutcome]:
        """Skip all pending tasks below a failed task. Caller holds the lock."""
        skipped: list[TaskOutcome] = []
        stack = list(self.graph.dependents(failed.key))
        while stack:
            key = stack.pop()
            if self._status[key] != TaskStatus.PENDING:
                continue
            task = self.graph[key].task
            outcome = TaskOutcome(
                key=key,
                remote_url=task.remote_url,
                kind=task.kind,
                status=TaskStatus.SKIPPED,
                error_kind=failed.error_kind,
                message=f"Skipped because '{failed.key}' failed",
            )
            self._record(outcome)
            skipped.append(outcome)
            stack.extend(self.graph.dependents(key))
        return skipped

    def _report(self, outcome: TaskOutcome, skipped: list[TaskOutcome]) -> None:
        if outcome.status == TaskStatus.SUCCEEDED:
            logger.debug(f"Completed {outcome.key} in {outcome.elapsed:.2f}s")
            if self.tracker is not None:
                task = self.graph[outcome.key].task
                size = len(task.payload) if task.payload is not None else 0
                self.tracker.on_task_succeeded(outcome.key, outcome.remote_url, size)
        else:
            logger.warning(f"Failed {outcome.key}: {outcome.message}")
            if self.tracker is not None:
                self.tracker.on_task_failed(
                    outcome.key, outcome.remote_url, outcome.message
                )

        for item in skipped:
            logger.debug(f"Skipped {item.key}: {item.message}")
            if self.tracker is not None:
                self.tracker.on_task_skipped(item.key, item.remote_url, item.message)
