"""Unit tests for the davsync CLI commands."""

import json
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from click.testing import CliRunner

from pydavsync.cli import main
from pydavsync.exceptions import DavConfigError, DavConflictError, DavLockedError
from pydavsync.sync import SyncProgressTracker
from pydavsync.utils import resolve_remote_url

REMOTE = "https://dav.example.com/site/"


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner(env={"DAVSYNC_REMOTE_URL": None})


@pytest.fixture
def mock_config():
    """Mock the config module."""
    with patch("pydavsync.cli.config") as mock:
        mock.remote_url = None
        mock.max_workers = None
        yield mock


@pytest.fixture
def mock_client():
    """Mock DavClient as used by the CLI, including the context manager."""
    with patch("pydavsync.cli.DavClient") as mock_client_class:
        client = MagicMock()
        client.__enter__.return_value = client
        client.remote_url = REMOTE
        client.credentials = None
        client.url_for.side_effect = lambda path: resolve_remote_url(REMOTE, path)
        client.sync_directory.return_value = 201
        client.upload_resource.return_value = 201
        client.create_collection.return_value = 201
        client.remove_collection.return_value = 204
        mock_client_class.return_value = client
        yield client


@pytest.fixture
def local_tree(tmp_path):
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "a.txt").write_text("abc")
    (tmp_path / "index.html").write_text("<html/>")
    return tmp_path


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        """Test main help shows all commands."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "PyDavSync" in result.output
        assert "--remote-url" in result.output
        for command in ("init", "sync", "mkdir", "rmdir", "put"):
            assert command in result.output

    def test_main_with_global_remote_url(self, runner):
        result = runner.invoke(main, ["--remote-url", REMOTE, "--help"])
        assert result.exit_code == 0


class TestInitCommand:
    """Tests for the init command."""

    def test_init_saves_url(self, runner, mock_config):
        mock_config.get_config_path.return_value = "/home/u/.config/pydavsync/config"

        result = runner.invoke(
            main, ["init", "--remote-url", "https://bob:pw@dav.example.com/"]
        )

        assert result.exit_code == 0
        mock_config.save_remote_url.assert_called_once_with(
            "https://bob:pw@dav.example.com/"
        )
        assert "https://dav.example.com/" in result.output
        assert "pw@" not in result.output

    def test_init_prompts_for_url(self, runner, mock_config):
        mock_config.get_config_path.return_value = "config"

        result = runner.invoke(main, ["init"], input=f"{REMOTE}\n")

        assert result.exit_code == 0
        mock_config.save_remote_url.assert_called_once_with(REMOTE)

    def test_init_invalid_url(self, runner, mock_config):
        result = runner.invoke(main, ["init", "--remote-url", "not a url"])

        assert result.exit_code == 1
        assert "Invalid remote URL" in result.output
        mock_config.save_remote_url.assert_not_called()

    def test_init_json(self, runner, mock_config):
        mock_config.get_config_path.return_value = "config"

        result = runner.invoke(main, ["--json", "init", "--remote-url", REMOTE])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "remote_url": REMOTE,
            "config_file": "config",
        }


class TestSyncCommand:
    """Tests for the sync command."""

    def test_sync_without_remote_url(self, runner, mock_config, local_tree):
        result = runner.invoke(main, ["sync", str(local_tree)])

        assert result.exit_code == 1
        assert "Remote URL not configured" in result.output

    def test_sync_success(self, runner, mock_config, mock_client, local_tree):
        result = runner.invoke(main, ["sync", str(local_tree), REMOTE, "--no-progress"])

        assert result.exit_code == 0
        assert "Sync complete!" in result.output
        mock_client.sync_directory.assert_called_once_with(
            REMOTE + "docs", credentials=None
        )
        assert mock_client.upload_resource.call_count == 2
        mock_client.close.assert_called()

    def test_sync_with_progress_display(
        self, runner, mock_config, mock_client, local_tree
    ):
        with patch(
            "pydavsync.cli_progress.SyncProgressDisplay.create_tracker",
            autospec=True,
            side_effect=lambda display: SyncProgressTracker(
                callback=display._handle_event
            ),
        ) as mock_create_tracker:
            result = runner.invoke(main, ["sync", str(local_tree), REMOTE])

        assert result.exit_code == 0
        mock_create_tracker.assert_called_once()
        assert mock_client.upload_resource.call_count == 2

    def test_sync_uses_global_remote_url(
        self, runner, mock_config, mock_client, local_tree
    ):
        with patch("pydavsync.cli.DavClient") as mock_client_class:
            mock_client_class.return_value = mock_client
            result = runner.invoke(
                main, ["-u", REMOTE, "sync", str(local_tree), "--no-progress"]
            )

        assert result.exit_code == 0
        assert mock_client_class.call_args.kwargs["remote_url"] == REMOTE

    def test_sync_uses_configured_remote_url(
        self, runner, mock_config, mock_client, local_tree
    ):
        mock_config.remote_url = REMOTE

        result = runner.invoke(main, ["sync", str(local_tree), "--no-progress"])

        assert result.exit_code == 0

    def test_sync_json(self, runner, mock_config, mock_client, local_tree):
        result = runner.invoke(main, ["--json", "sync", str(local_tree), REMOTE])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["total"] == 3
        assert data["succeeded"] == 3

    def test_sync_failure_exit_code(
        self, runner, mock_config, mock_client, local_tree
    ):
        mock_client.sync_directory.side_effect = DavLockedError("locked", 423)

        result = runner.invoke(main, ["--json", "sync", str(local_tree), REMOTE])

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["success"] is False
        assert data["failed"] == 1
        assert data["skipped"] == 1
        assert data["succeeded"] == 1

    def test_sync_quiet_reports_failures(
        self, runner, mock_config, mock_client, local_tree
    ):
        mock_client.upload_resource.side_effect = DavConflictError("conflict", 409)

        result = runner.invoke(main, ["-q", "sync", str(local_tree), REMOTE])

        assert result.exit_code == 1
        assert "[conflict]" in result.output

    def test_sync_dry_run(self, runner, mock_config, mock_client, local_tree):
        result = runner.invoke(main, ["sync", str(local_tree), REMOTE, "--dry-run"])

        assert result.exit_code == 0
        assert "Dry run complete!" in result.output
        mock_client.sync_directory.assert_not_called()
        mock_client.upload_resource.assert_not_called()

    def test_sync_dry_run_json(self, runner, mock_config, mock_client, local_tree):
        result = runner.invoke(
            main, ["--json", "sync", str(local_tree), REMOTE, "--dry-run"]
        )

        assert result.exit_code == 0
        keys = [item["key"] for item in json.loads(result.output)]
        assert keys == ["docs", "docs/a.txt", "index.html"]

    def test_sync_ignore_patterns(self, runner, mock_config, mock_client, local_tree):
        result = runner.invoke(
            main,
            ["sync", str(local_tree), REMOTE, "--no-progress", "-i", "*.html"],
        )

        assert result.exit_code == 0
        mock_client.upload_resource.assert_called_once()

    @pytest.mark.parametrize(
        "option", [["--workers", "0"], ["--timeout", "0"], ["-j", "-3"]]
    )
    def test_sync_invalid_options(
        self, runner, mock_config, mock_client, local_tree, option
    ):
        result = runner.invoke(main, ["sync", str(local_tree), REMOTE, *option])

        assert result.exit_code == 1
        mock_client.sync_directory.assert_not_called()

    def test_sync_invalid_configured_workers(
        self, runner, mock_client, local_tree
    ):
        with patch("pydavsync.cli.config") as mock_config:
            type(mock_config).max_workers = PropertyMock(
                side_effect=DavConfigError("DAVSYNC_WORKERS must be at least 1")
            )
            result = runner.invoke(main, ["sync", str(local_tree), REMOTE])

        assert result.exit_code == 1
        assert "DAVSYNC_WORKERS" in result.output

    def test_sync_missing_path(self, runner, mock_config, tmp_path):
        result = runner.invoke(main, ["sync", str(tmp_path / "missing"), REMOTE])
        assert result.exit_code != 0


class TestSingleOperations:
    """Tests for mkdir, rmdir and put."""

    def test_mkdir(self, runner, mock_config, mock_client):
        result = runner.invoke(main, ["-u", REMOTE, "mkdir", "new folder"])

        assert result.exit_code == 0
        mock_client.create_collection.assert_called_once_with(
            REMOTE + "new%20folder"
        )
        assert "Collection created" in result.output

    def test_mkdir_failure(self, runner, mock_config, mock_client):
        mock_client.create_collection.side_effect = DavConflictError(
            "Missing parent", 409, REMOTE + "a/b"
        )

        result = runner.invoke(main, ["-u", REMOTE, "--json", "mkdir", "a/b"])

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["success"] is False
        assert data["error_kind"] == "conflict"

    def test_mkdir_without_remote_url(self, runner, mock_config):
        result = runner.invoke(main, ["mkdir", "a"])
        assert result.exit_code == 1
        assert "Remote URL not configured" in result.output

    def test_rmdir(self, runner, mock_config, mock_client):
        result = runner.invoke(main, ["-u", REMOTE, "--json", "rmdir", "old"])

        assert result.exit_code == 0
        mock_client.remove_collection.assert_called_once_with(REMOTE + "old")
        assert json.loads(result.output) == {
            "success": True,
            "remote_url": REMOTE + "old",
            "status_code": 204,
        }

    def test_rmdir_locked(self, runner, mock_config, mock_client):
        mock_client.remove_collection.side_effect = DavLockedError("locked", 423)

        result = runner.invoke(main, ["-u", REMOTE, "rmdir", "old"])

        assert result.exit_code == 1
        assert "locked" in result.output

    def test_put_defaults_to_file_name(
        self, runner, mock_config, mock_client, tmp_path
    ):
        local_file = tmp_path / "report.pdf"
        local_file.write_bytes(b"%PDF")

        result = runner.invoke(main, ["-u", REMOTE, "put", str(local_file)])

        assert result.exit_code == 0
        mock_client.upload_resource.assert_called_once_with(
            REMOTE + "report.pdf", b"%PDF"
        )

    def test_put_with_remote_path(self, runner, mock_config, mock_client, tmp_path):
        local_file = tmp_path / "report.pdf"
        local_file.write_bytes(b"%PDF")

        result = runner.invoke(
            main, ["-u", REMOTE, "put", str(local_file), "docs/r.pdf"]
        )

        assert result.exit_code == 0
        mock_client.upload_resource.assert_called_once_with(
            REMOTE + "docs/r.pdf", b"%PDF"
        )
