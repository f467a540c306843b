"""Dependency graph of sync tasks."""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable

from ..exceptions import DavGraphIntegrityError
from .mapper import MappedTask

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphNode:
    """A task together with the keys it depends on."""

    task: MappedTask
    dependencies: frozenset[str]


class TaskGraph(Mapping[str, GraphNode]):
    """Immutable mapping of task key to GraphNode.

    Also keeps a reverse index from each key to the keys that depend on it.
    """

    def __init__(self, nodes: dict[str, GraphNode]):
        self._nodes = MappingProxyType(dict(nodes))
        dependents: dict[str, list[str]] = {key: [] for key in self._nodes}
        for key, node in self._nodes.items():
            for dependency in node.dependencies:
                dependents[dependency].append(key)
        self._dependents = MappingProxyType(
            {key: tuple(sorted(children)) for key, children in dependents.items()}
        )

    def __getitem__(self, key: str) -> GraphNode:
        return self._nodes[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def dependents(self, key: str) -> tuple[str, ...]:
        """Keys of the tasks that directly depend on ``key``."""
        return self._dependents[key]

    def roots(self) -> list[str]:
        """Keys of the tasks without dependencies."""
        return [key for key, node in self._nodes.items() if not node.dependencies]


def build_task_graph(tasks: Iterable[MappedTask]) -> TaskGraph:
    """Build the dependency graph for a run.

    Each task depends on its parent directory's task when that task is part
    of the run. A parent key with no matching task means no dependency.

    Args:
        tasks: All tasks of the run

    Returns:
        TaskGraph

    Raises:
        DavGraphIntegrityError: If two tasks share a key
    """
    by_key: dict[str, MappedTask] = {}
    for task in tasks:
        if task.key in by_key:
            raise DavGraphIntegrityError(f"Duplicate task key: {task.key}")
        by_key[task.key] = task

    nodes: dict[str, GraphNode] = {}
    for key, task in by_key.items():
        if task.parent_key is not None and task.parent_key in by_key:
            dependencies = frozenset({task.parent_key})
        else:
            dependencies = frozenset()
        nodes[key] = GraphNode(task=task, dependencies=dependencies)

    logger.debug(f"Built task graph with {len(nodes)} task(s)")
    return TaskGraph(nodes)
