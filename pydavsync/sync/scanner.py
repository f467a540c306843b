"""Directory scanning utilities for sync operations."""

import fnmatch
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalEntry:
    """Represents a local file or directory found under the sync root."""

    path: Path
    """Absolute path to the entry"""

    is_dir: bool
    """Whether the entry is a directory"""

    content: Optional[bytes] = None
    """Raw file content (None for directories)"""

    @property
    def size(self) -> int:
        """Content size in bytes (0 for directories)."""
        return len(self.content) if self.content is not None else 0

    @classmethod
    def from_path(cls, path: Path) -> "LocalEntry":
        """Create a LocalEntry from a path, reading file content.

        Args:
            path: Path to a file or directory

        Returns:
            LocalEntry instance
        """
        if path.is_dir():
            return cls(path=path, is_dir=True)
        return cls(path=path, is_dir=False, content=path.read_bytes())


class DirectoryScanner:
    """Scans a local directory tree into LocalEntry values.

    The sync root itself is not part of the result; only entries below it
    are returned. Directories are listed before their contents.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> entries = scanner.scan_local(Path("/sync/folder"))

        >>> # With ignore patterns
        >>> scanner = DirectoryScanner(ignore_patterns=["*.tmp", "cache/*"])
        >>> entries = scanner.scan_local(Path("/sync/folder"))
    """

    def __init__(
        self,
        ignore_patterns: Optional[list[str]] = None,
        exclude_dot_files: bool = False,
    ):
        """Initialize directory scanner.

        Args:
            ignore_patterns: List of glob patterns to ignore (e.g., ["*.log", "temp/*"])
                matched against the entry name and its relative path
            exclude_dot_files: Whether to exclude files/folders starting with dot
        """
        self.ignore_patterns = ignore_patterns or []
        self.exclude_dot_files = exclude_dot_files

    def should_ignore(self, path: Path, base_path: Path) -> bool:
        """Check if a path should be ignored based on patterns.

        Args:
            path: Path to check
            base_path: Base path for relative path calculation

        Returns:
            True if path should be ignored
        """
        if self.exclude_dot_files and path.name.startswith("."):
            return True

        relative_path = path.relative_to(base_path).as_posix()
        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(path.name, pattern) or fnmatch.fnmatch(
                relative_path, pattern
            ):
                logger.debug(f"Ignoring (pattern {pattern!r}): {relative_path}")
                return True
        return False

    def scan_local(
        self, directory: Path, base_path: Optional[Path] = None
    ) -> list[LocalEntry]:
        """Recursively scan a local directory.

        Ignored directories are pruned together with their contents.
        Symlinked directories are followed unless they point back at a
        directory that is already being scanned.

        Args:
            directory: Directory to scan
            base_path: Base path for calculating relative paths (defaults to directory)

        Returns:
            List of LocalEntry objects, parents before children
        """
        if base_path is None:
            base_path = directory
        return self._scan(directory, base_path, frozenset({directory.resolve()}))

    def _scan(
        self, directory: Path, base_path: Path, ancestors: frozenset[Path]
    ) -> list[LocalEntry]:
        entries: list[LocalEntry] = []

        try:
            children = sorted(directory.iterdir())
        except PermissionError as e:
            logger.warning(f"Permission denied, skipping directory: {e}")
            return entries

        for item in children:
            if self.should_ignore(item, base_path):
                continue

            if item.is_dir():
                real_path = item.resolve()
                if real_path in ancestors:
                    logger.warning(f"Skipping symlink loop: {item} -> {real_path}")
                    continue
                entries.append(LocalEntry(path=item, is_dir=True))
                entries.extend(self._scan(item, base_path, ancestors | {real_path}))
            elif item.is_file():
                try:
                    entries.append(LocalEntry.from_path(item))
                except OSError as e:
                    logger.warning(f"Could not read {item}: {e}")

        return entries
