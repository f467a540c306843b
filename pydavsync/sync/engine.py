"""Core sync engine for pushing a local directory to a WebDAV store."""

import logging
import time
from pathlib import Path
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..api import DavClient
from ..output import OutputFormatter
from .graph import TaskGraph, build_task_graph
from .mapper import PathMapper, TaskKind
from .operations import SyncOperations
from .progress import SyncProgressTracker
from .scanner import DirectoryScanner, LocalEntry
from .scheduler import RunResult, TaskScheduler

logger = logging.getLogger(__name__)


class SyncEngine:
    """Core sync engine that orchestrates the push of a directory tree."""

    def __init__(
        self,
        client: DavClient,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            client: WebDAV client
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.output = output or OutputFormatter()
        self.operations = SyncOperations(client)

    def _scan_local(
        self,
        local_path: Path,
        ignore_patterns: Optional[list[str]],
        exclude_dot_files: bool,
        show_spinner: bool = True,
    ) -> list[LocalEntry]:
        # Validate local directory exists
        if not local_path.exists():
            raise ValueError(f"Local directory does not exist: {local_path}")
        if not local_path.is_dir():
            raise ValueError(f"Local path is not a directory: {local_path}")

        scan_start = time.time()
        scanner = DirectoryScanner(
            ignore_patterns=ignore_patterns,
            exclude_dot_files=exclude_dot_files,
        )
        if not show_spinner or self.output.quiet or self.output.json_output:
            entries = scanner.scan_local(local_path)
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                transient=True,
            ) as progress:
                task = progress.add_task("Scanning local directory...", total=None)
                entries = scanner.scan_local(local_path)
                progress.update(task, description=f"Found {len(entries)} entries")
        logger.debug(
            f"Local scan took {time.time() - scan_start:.2f}s "
            f"for {len(entries)} entries"
        )
        return entries

    def plan(
        self,
        local_path: Path,
        ignore_patterns: Optional[list[str]] = None,
        exclude_dot_files: bool = False,
        show_spinner: bool = True,
    ) -> TaskGraph:
        """Scan a local directory and build the task graph for it.

        Args:
            local_path: Local sync root
            ignore_patterns: Glob patterns to exclude
            exclude_dot_files: Whether to exclude dot files and folders
            show_spinner: Show a spinner while scanning (needs the console
                to be free of other live displays)

        Returns:
            TaskGraph for the run

        Raises:
            ValueError: If the local path is missing or not a directory
            DavGraphIntegrityError: If the graph cannot be built
        """
        entries = self._scan_local(
            local_path, ignore_patterns, exclude_dot_files, show_spinner
        )
        mapper = PathMapper(
            local_path, self.client.remote_url, credentials=self.client.credentials
        )
        return build_task_graph(mapper.map_entries(entries))

    def sync_directory(
        self,
        local_path: Path,
        dry_run: bool = False,
        max_workers: Optional[int] = None,
        ignore_patterns: Optional[list[str]] = None,
        exclude_dot_files: bool = False,
        tracker: Optional[SyncProgressTracker] = None,
    ) -> RunResult:
        """Push a local directory to the remote root.

        Every directory is removed and recreated remotely before its
        contents are uploaded. Independent subtrees run in parallel.

        Args:
            local_path: Local sync root
            dry_run: If True, only show what would be done
            max_workers: Thread limit (None means one per task, up to 100)
            ignore_patterns: Glob patterns to exclude
            exclude_dot_files: Whether to exclude dot files and folders
            tracker: Optional progress tracker

        Returns:
            RunResult (empty for dry runs)

        Examples:
            >>> engine = SyncEngine(DavClient("https://dav.example.com/site/"))
            >>> result = engine.sync_directory(Path("/local/site"))
            >>> print(result.success)
        """
        if not self.output.quiet:
            self.output.info(f"Syncing: {local_path} -> {self.client.remote_url}")
            if dry_run:
                self.output.info("Dry run: No changes will be made")
            self.output.print("")

        # A tracker means a progress display is already live on the console
        graph = self.plan(
            local_path,
            ignore_patterns,
            exclude_dot_files,
            show_spinner=tracker is None,
        )

        if dry_run:
            self._display_plan(graph)
            return RunResult()

        scheduler = TaskScheduler(
            graph,
            self.operations.run_task,
            max_workers=max_workers,
            tracker=tracker,
        )
        result = scheduler.run()

        if not self.output.quiet:
            self._display_summary(result)
        return result

    def _display_plan(self, graph: TaskGraph) -> None:
        """Display the tasks a run would execute.

        Args:
            graph: Planned task graph
        """
        tasks = [node.task for node in graph.values()]
        directories = [t for t in tasks if t.kind == TaskKind.DIRECTORY_SYNC]
        files = [t for t in tasks if t.kind == TaskKind.FILE_UPLOAD]

        if self.output.json_output:
            self.output.output_json(
                [
                    {
                        "key": node.task.key,
                        "kind": node.task.kind.value,
                        "remote_url": node.task.remote_url,
                        "depends_on": sorted(node.dependencies),
                    }
                    for node in graph.values()
                ]
            )
            return

        if not graph:
            self.output.info("No local entries found - nothing to sync")
            return

        rows = [["recreate dir", task.key, task.remote_url] for task in directories]
        rows += [["upload", task.key, task.remote_url] for task in files]
        self.output.output_table("Sync plan", ["Action", "Path", "Remote URL"], rows)
        total_bytes = sum(len(task.payload or b"") for task in files)
        self.output.print_summary(
            "Dry run complete!",
            [
                ("Directories", str(len(directories))),
                ("Files", str(len(files))),
                ("Upload size", self.output.format_size(total_bytes)),
            ],
        )

    def _display_summary(self, result: RunResult) -> None:
        """Display sync summary.

        Args:
            result: Result of the run
        """
        self.output.print("")
        if result.success:
            self.output.success("Sync complete!")
        else:
            self.output.error("Sync finished with errors")

        if not result.outcomes:
            self.output.info("No local entries found - nothing to sync")
            return

        self.output.info(f"Total tasks: {len(result.outcomes)}")
        self.output.info(f"  Succeeded: {len(result.succeeded)}")
        if result.failed:
            self.output.info(f"  Failed: {len(result.failed)}")
        if result.skipped:
            self.output.info(f"  Skipped: {len(result.skipped)}")

        for outcome in result.failed:
            kind = outcome.error_kind.value if outcome.error_kind else "unknown"
            self.output.error(
                f"{outcome.key} ({outcome.remote_url}) [{kind}]: {outcome.message}"
            )
