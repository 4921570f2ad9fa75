"""Tests for project file helpers."""

import os
import time
from datetime import UTC, datetime
from pathlib import Path

from contextpilot.project.files import (
    is_text_file,
    list_project_files,
    normalize_path,
    read_code_file,
    recent_modified_files,
    relative_path,
)
from contextpilot.project.ignore import IgnoreRules


def set_mtime(path: Path, timestamp: float) -> None:
    os.utime(path, (timestamp, timestamp))


class TestPaths:
    """Tests for path helpers."""

    def test_normalize_relative_to_cwd(self, tmp_path: Path) -> None:
        assert normalize_path("src/../a.py", tmp_path) == str(tmp_path / "a.py")

    def test_normalize_keeps_absolute(self, tmp_path: Path) -> None:
        assert normalize_path("/etc/hosts", tmp_path) == "/etc/hosts"

    def test_relative_path(self, tmp_path: Path) -> None:
        assert relative_path(tmp_path / "src" / "a.py", tmp_path) == "src/a.py"
        assert relative_path("src/a.py", tmp_path) == "src/a.py"


class TestReadCodeFile:
    """Tests for reading files into context."""

    def test_reads_text(self, tmp_path: Path) -> None:
        path = tmp_path / "a.py"
        path.write_text("print('hi')\n")

        result = read_code_file(path)

        assert result.ok
        assert result.content == "print('hi')\n"

    def test_missing(self, tmp_path: Path) -> None:
        path = tmp_path / "missing.py"

        result = read_code_file(path)

        assert result.content is None
        assert result.error == f"File with filepath '{path}' does not exist"

    def test_binary(self, tmp_path: Path) -> None:
        path = tmp_path / "image.bin"
        path.write_bytes(b"\x89PNG\x00\x00")

        assert read_code_file(path).error == (
            f"File with filepath '{path}' is not a text file"
        )

    def test_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big.txt"
        path.write_text("x" * 200)

        assert read_code_file(path, max_file_size=100).error == (
            f"File with filepath '{path}' is too large to read"
        )

    def test_utf8_split_at_sniff_boundary_is_text(self, tmp_path: Path) -> None:
        path = tmp_path / "unicode.md"
        path.write_text("a" * 8191 + "é" * 10, encoding="utf-8")

        assert is_text_file(path)

    def test_invalid_utf8_is_not_text(self, tmp_path: Path) -> None:
        path = tmp_path / "latin1.txt"
        path.write_bytes("café au lait".encode("latin-1"))

        assert not is_text_file(path)


class TestListing:
    """Tests for project walks."""

    def test_newest_first_and_ignored(self, tmp_path: Path) -> None:
        now = time.time()
        for offset, name in enumerate(["old.py", "mid.py", "new.py"]):
            path = tmp_path / name
            path.write_text(name)
            set_mtime(path, now - 100 + offset * 10)
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "lib.js").write_text("x")

        files = list_project_files(tmp_path, IgnoreRules.from_directory(tmp_path))

        assert [Path(f).name for f in files] == ["new.py", "mid.py", "old.py"]

    def test_max_results_and_size(self, tmp_path: Path) -> None:
        (tmp_path / "a.py").write_text("a")
        (tmp_path / "b.py").write_text("b" * 500)

        assert list_project_files(tmp_path, max_file_size=100) == [
            str(tmp_path / "a.py")
        ]
        assert len(list_project_files(tmp_path, max_results=1)) == 1

    def test_recent_modified_files(self, tmp_path: Path) -> None:
        old = tmp_path / "old.py"
        new = tmp_path / "new.py"
        old.write_text("old")
        new.write_text("new")
        set_mtime(old, 1_000_000)
        set_mtime(new, 2_000_000)

        since = datetime.fromtimestamp(1_500_000, tz=UTC)

        assert recent_modified_files(tmp_path, since) == [str(new)]
