"""Rich progress bar for davsync runs.

Renders the task counters collected by SyncProgressTracker while the
scheduler works through the task graph.
"""

from pathlib import Path
from typing import Optional

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .sync.progress import SyncProgressEvent, SyncProgressInfo, SyncProgressTracker
from .sync.scheduler import RunResult
from .utils import format_size


class SyncProgressDisplay:
    """Progress bar over all tasks of a sync run.

    Next to the bar it shows the bytes uploaded so far and the number of
    failed and skipped tasks.
    """

    def __init__(self) -> None:
        """Initialize the progress display."""
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def create_tracker(self) -> SyncProgressTracker:
        """Create a SyncProgressTracker that updates this display.

        Returns:
            A configured SyncProgressTracker
        """
        return SyncProgressTracker(callback=self._handle_event)

    def _format_run_info(self, info: SyncProgressInfo) -> str:
        """Format run counters like "1.5 MB, 1 failed, 3 skipped"."""
        parts = [format_size(info.bytes_uploaded)]
        if info.tasks_failed:
            parts.append(f"{info.tasks_failed} failed")
        if info.tasks_skipped:
            parts.append(f"{info.tasks_skipped} skipped")
        return ", ".join(parts)

    def _handle_event(self, info: SyncProgressInfo) -> None:
        """Handle a progress event from the tracker.

        Args:
            info: Progress information
        """
        if self._progress is None or self._task is None:
            return

        if info.event == SyncProgressEvent.RUN_START:
            self._progress.update(
                self._task,
                description="Syncing",
                total=info.tasks_total,
                completed=0,
                run_info=self._format_run_info(info),
            )

        elif info.event == SyncProgressEvent.TASK_STARTED:
            self._progress.update(self._task, description=f"Syncing: {info.key}")

        elif info.event in (
            SyncProgressEvent.TASK_SUCCEEDED,
            SyncProgressEvent.TASK_FAILED,
            SyncProgressEvent.TASK_SKIPPED,
        ):
            self._progress.update(
                self._task,
                completed=info.tasks_done,
                run_info=self._format_run_info(info),
            )

        elif info.event == SyncProgressEvent.RUN_COMPLETE:
            self._progress.update(self._task, description="Sync finished")

    def __enter__(self) -> "SyncProgressDisplay":
        """Enter context manager - start progress display."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[cyan]{task.fields[run_info]}"),
            TimeElapsedColumn(),
            refresh_per_second=4,
        )
        self._progress.__enter__()

        self._task = self._progress.add_task(
            "Preparing sync...",
            total=None,
            run_info="0 B",
        )

        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None


def run_sync_with_progress(
    engine,
    local_path: Path,
    max_workers: Optional[int],
    ignore_patterns: Optional[list[str]],
    exclude_dot_files: bool,
) -> RunResult:
    """Run a sync while rendering its progress bar.

    Args:
        engine: SyncEngine instance
        local_path: Local sync root
        max_workers: Thread limit (None means one per task, up to 100)
        ignore_patterns: Glob patterns to exclude
        exclude_dot_files: Whether to exclude dot files and folders

    Returns:
        RunResult of the sync
    """
    with SyncProgressDisplay() as display:
        tracker = display.create_tracker()

        return engine.sync_directory(
            local_path,
            max_workers=max_workers,
            ignore_patterns=ignore_patterns,
            exclude_dot_files=exclude_dot_files,
            tracker=tracker,
        )
