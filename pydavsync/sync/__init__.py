"""Sync engine for pydavsync - push a local tree to a WebDAV store."""

from .engine import SyncEngine
from .graph import GraphNode, TaskGraph, build_task_graph
from .mapper import MappedTask, PathMapper, TaskKind, compute_key, parent_key_of
from .operations import SyncOperations
from .progress import SyncProgressEvent, SyncProgressInfo, SyncProgressTracker
from .scanner import DirectoryScanner, LocalEntry
from .scheduler import RunResult, TaskOutcome, TaskScheduler, TaskStatus

__all__ = [
    "SyncEngine",
    "SyncOperations",
    "DirectoryScanner",
    "LocalEntry",
    "PathMapper",
    "MappedTask",
    "TaskKind",
    "compute_key",
    "parent_key_of",
    "GraphNode",
    "TaskGraph",
    "build_task_graph",
    "TaskScheduler",
    "TaskStatus",
    "TaskOutcome",
    "RunResult",
    "SyncProgressEvent",
    "SyncProgressInfo",
    "SyncProgressTracker",
]
