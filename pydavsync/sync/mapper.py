"""Mapping of local entries to remote sync tasks."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from ..utils import Credentials, parse_remote_url, resolve_remote_url
from .scanner import LocalEntry


class TaskKind(str, Enum):
    """Kinds of remote work."""

    DIRECTORY_SYNC = "directory_sync"
    """Remove the remote collection, then create it again"""

    FILE_UPLOAD = "file_upload"
    """Create or replace a remote resource"""


@dataclass(frozen=True)
class MappedTask:
    """One unit of remote work derived from a local entry."""

    key: str
    """Path relative to the sync root, using forward slashes"""

    parent_key: Optional[str]
    """Key of the containing directory (None at the sync root)"""

    kind: TaskKind
    """What to do remotely"""

    remote_url: str
    """Fully resolved destination URL without credentials"""

    credentials: Optional[Credentials] = None
    """(user, password) taken from the remote root URL"""

    payload: Optional[bytes] = None
    """File content for uploads (None for directories)"""


def compute_key(local_root: Path, entry_path: Path) -> str:
    """Relative path of an entry under the root, with forward slashes."""
    return entry_path.relative_to(local_root).as_posix()


def parent_key_of(key: str) -> Optional[str]:
    """Drop the last segment of a key.

    Examples:
        >>> parent_key_of("a/b/c.txt")
        'a/b'
        >>> parent_key_of("c.txt") is None
        True
    """
    parent, sep, _ = key.rpartition("/")
    if not sep:
        return None
    return parent


class PathMapper:
    """Maps LocalEntry values to MappedTask values for one run."""

    def __init__(
        self,
        local_root: Path,
        remote_root: str,
        credentials: Optional[Credentials] = None,
    ):
        """Initialize the mapper.

        Args:
            local_root: Local sync root
            remote_root: Remote root URL, optionally with embedded credentials
            credentials: Explicit (user, password), used when the remote root
                carries none
        """
        self.local_root = local_root
        self.remote_root, embedded = parse_remote_url(remote_root)
        self.credentials = embedded if embedded is not None else credentials

    def map_entry(self, entry: LocalEntry) -> MappedTask:
        """Map one local entry to a task.

        Args:
            entry: Entry below ``local_root``

        Returns:
            MappedTask for the entry
        """
        key = compute_key(self.local_root, entry.path)
        kind = TaskKind.DIRECTORY_SYNC if entry.is_dir else TaskKind.FILE_UPLOAD
        return MappedTask(
            key=key,
            parent_key=parent_key_of(key),
            kind=kind,
            remote_url=resolve_remote_url(self.remote_root, key),
            credentials=self.credentials,
            payload=None if entry.is_dir else (entry.content or b""),
        )

    def map_entries(self, entries: Iterable[LocalEntry]) -> list[MappedTask]:
        return [self.map_entry(entry) for entry in entries]
