"""Sync operations: execute one mapped task against the remote store."""

from ..api import DavClient
from .mapper import MappedTask, TaskKind


class SyncOperations:
    """Unified operations for directory and file tasks."""

    def __init__(self, client: DavClient):
        """Initialize sync operations.

        Args:
            client: WebDAV client
        """
        self.client = client

    def sync_directory(self, task: MappedTask) -> int:
        """Remove and recreate the remote collection for a directory task.

        Args:
            task: DirectorySync task

        Returns:
            Status code of the create step

        Raises:
            DavRemoteError: Error of the remove step, or of the create step
                when removal succeeded
        """
        return self.client.sync_directory(
            task.remote_url, credentials=task.credentials
        )

    def upload_file(self, task: MappedTask) -> int:
        """Upload the payload of a file task.

        Args:
            task: FileUpload task

        Returns:
            Status code of the upload
        """
        return self.client.upload_resource(
            task.remote_url, task.payload or b"", credentials=task.credentials
        )

    def run_task(self, task: MappedTask) -> int:
        """Execute a task according to its kind."""
        if task.kind == TaskKind.DIRECTORY_SYNC:
            return self.sync_directory(task)
        return self.upload_file(task)
