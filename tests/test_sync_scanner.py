"""Tests for the local directory scanner."""

import tempfile
from pathlib import Path

import pytest

from pydavsync.sync import DirectoryScanner, LocalEntry


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def relative(entries, root):
    return [entry.path.relative_to(root).as_posix() for entry in entries]


class TestLocalEntry:
    """Tests for LocalEntry."""

    def test_from_path_file(self, temp_dir):
        path = temp_dir / "a.txt"
        path.write_bytes(b"hello")

        entry = LocalEntry.from_path(path)

        assert entry.is_dir is False
        assert entry.content == b"hello"
        assert entry.size == 5

    def test_from_path_directory(self, temp_dir):
        entry = LocalEntry.from_path(temp_dir)
        assert entry.is_dir is True
        assert entry.content is None
        assert entry.size == 0


class TestDirectoryScanner:
    """Tests for DirectoryScanner."""

    def test_empty_directory(self, temp_dir):
        assert DirectoryScanner().scan_local(temp_dir) == []

    def test_root_is_excluded(self, temp_dir):
        (temp_dir / "a.txt").write_text("a")
        entries = DirectoryScanner().scan_local(temp_dir)
        assert all(entry.path != temp_dir for entry in entries)

    def test_parents_before_children(self, temp_dir):
        (temp_dir / "a" / "b").mkdir(parents=True)
        (temp_dir / "a" / "b" / "c.txt").write_text("c")
        (temp_dir / "a" / "x.txt").write_text("x")
        (temp_dir / "z.txt").write_text("z")

        entries = DirectoryScanner().scan_local(temp_dir)

        assert relative(entries, temp_dir) == [
            "a",
            "a/b",
            "a/b/c.txt",
            "a/x.txt",
            "z.txt",
        ]

    def test_file_content_is_read(self, temp_dir):
        (temp_dir / "a.txt").write_bytes(b"\x00\x01data")
        (entry,) = DirectoryScanner().scan_local(temp_dir)
        assert entry.content == b"\x00\x01data"

    def test_empty_directories_are_kept(self, temp_dir):
        (temp_dir / "empty").mkdir()
        (entry,) = DirectoryScanner().scan_local(temp_dir)
        assert entry.is_dir is True

    def test_ignore_pattern_by_name(self, temp_dir):
        (temp_dir / "a.txt").write_text("a")
        (temp_dir / "a.tmp").write_text("a")

        entries = DirectoryScanner(ignore_patterns=["*.tmp"]).scan_local(temp_dir)

        assert relative(entries, temp_dir) == ["a.txt"]

    def test_ignored_directory_is_pruned(self, temp_dir):
        (temp_dir / "cache").mkdir()
        (temp_dir / "cache" / "data.bin").write_text("x")
        (temp_dir / "keep.txt").write_text("k")

        entries = DirectoryScanner(ignore_patterns=["cache"]).scan_local(temp_dir)

        assert relative(entries, temp_dir) == ["keep.txt"]

    def test_ignore_pattern_by_relative_path(self, temp_dir):
        (temp_dir / "docs").mkdir()
        (temp_dir / "docs" / "draft.md").write_text("d")
        (temp_dir / "draft.md").write_text("d")

        scanner = DirectoryScanner(ignore_patterns=["docs/draft.md"])
        entries = scanner.scan_local(temp_dir)

        assert relative(entries, temp_dir) == ["docs", "draft.md"]

    def test_exclude_dot_files(self, temp_dir):
        (temp_dir / ".git").mkdir()
        (temp_dir / ".git" / "HEAD").write_text("ref")
        (temp_dir / ".env").write_text("x")
        (temp_dir / "a.txt").write_text("a")

        entries = DirectoryScanner(exclude_dot_files=True).scan_local(temp_dir)

        assert relative(entries, temp_dir) == ["a.txt"]

    def test_dot_files_included_by_default(self, temp_dir):
        (temp_dir / ".env").write_text("x")
        entries = DirectoryScanner().scan_local(temp_dir)
        assert relative(entries, temp_dir) == [".env"]

    def test_should_ignore(self, temp_dir):
        scanner = DirectoryScanner(ignore_patterns=["*.log"])
        assert scanner.should_ignore(temp_dir / "app.log", temp_dir)
        assert not scanner.should_ignore(temp_dir / "app.txt", temp_dir)

    def test_symlink_loop_is_skipped(self, temp_dir):
        (temp_dir / "a").mkdir()
        (temp_dir / "a" / "f.txt").write_text("f")
        (temp_dir / "a" / "loop").symlink_to(temp_dir, target_is_directory=True)

        entries = DirectoryScanner().scan_local(temp_dir)

        assert relative(entries, temp_dir) == ["a", "a/f.txt"]

    def test_symlinked_directory_is_followed(self, temp_dir):
        (temp_dir / "b").mkdir()
        (temp_dir / "b" / "f.txt").write_text("f")
        (temp_dir / "link").symlink_to(temp_dir / "b", target_is_directory=True)

        entries = DirectoryScanner().scan_local(temp_dir)

        assert relative(entries, temp_dir) == ["b", "b/f.txt", "link", "link/f.txt"]
