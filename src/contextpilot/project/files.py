"""Project file helpers: path normalization, text sniffing, walks and reads."""

import codecs
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog

from .ignore import IgnoreRules

logger = structlog.get_logger(__name__)

MAX_ALLOWED_FILE_SIZE = 100_000
SNIFF_BYTES = 8192


@dataclass
class FileReadResult:
    """Outcome of reading a project file. Exactly one field is set."""

    content: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_path(path: str | Path, cwd: str | Path) -> str:
    """Resolve path against cwd and return it normalized and absolute."""
    expanded = os.path.expanduser(str(path))
    if not os.path.isabs(expanded):
        expanded = os.path.join(str(cwd), expanded)
    return os.path.normpath(expanded)


def relative_path(path: str | Path, root: str | Path) -> str:
    """Return path relative to root in POSIX form; relative input is kept."""
    path_str = os.path.normpath(str(path))
    if not os.path.isabs(path_str):
        return Path(path_str).as_posix()
    return Path(os.path.relpath(path_str, str(root))).as_posix()


def is_text_file(path: str | Path) -> bool:
    """Sniff the first bytes of a file: no NUL bytes and valid UTF-8."""
    try:
        with open(path, "rb") as f:
            chunk = f.read(SNIFF_BYTES)
    except OSError:
        return False
    if b"\x00" in chunk:
        return False
    # Incremental decode tolerates a multi-byte character cut at the boundary.
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(chunk, final=False)
    except UnicodeDecodeError:
        return False
    return True


def read_code_file(
    path: str | Path, max_file_size: int = MAX_ALLOWED_FILE_SIZE
) -> FileReadResult:
    """Read a text file for inclusion in model context."""
    path_str = str(path)
    try:
        if not os.path.exists(path_str):
            return FileReadResult(
                error=f"File with filepath '{path_str}' does not exist"
            )
        if not is_text_file(path_str):
            return FileReadResult(
                error=f"File with filepath '{path_str}' is not a text file"
            )
        if os.path.getsize(path_str) > max_file_size:
            return FileReadResult(
                error=f"File with filepath '{path_str}' is too large to read"
            )
        with open(path_str, encoding="utf-8", errors="replace") as f:
            return FileReadResult(content=f.read())
    except OSError as e:
        logger.warning("file_read_failed", path=path_str, error=str(e))
        return FileReadResult(error=f"Error reading code file: {e}")


def walk_project(
    root: str | Path, ignore: IgnoreRules
) -> list[tuple[str, os.stat_result]]:
    """Collect (absolute path, stat) for every non-ignored file under root."""
    root_str = os.path.abspath(str(root))
    found: list[tuple[str, os.stat_result]] = []

    for dirpath, dirnames, filenames in os.walk(root_str):
        rel_dir = relative_path(dirpath, root_str)
        rel_dir = "" if rel_dir == "." else rel_dir

        # Prune in place so os.walk does not descend.
        dirnames[:] = sorted(
            d
            for d in dirnames
            if not ignore.ignores(f"{rel_dir}/{d}" if rel_dir else d, is_dir=True)
        )

        for filename in filenames:
            rel = f"{rel_dir}/{filename}" if rel_dir else filename
            if ignore.ignores(rel):
                continue
            full_path = os.path.join(dirpath, filename)
            try:
                stat = os.stat(full_path)
            except OSError:
                continue
            found.append((full_path, stat))

    return found


def list_project_files(
    root: str | Path,
    ignore: IgnoreRules | None = None,
    max_file_size: int | None = None,
    max_results: int | None = None,
) -> list[str]:
    """Absolute paths of project files, newest first."""
    if ignore is None:
        ignore = IgnoreRules.from_directory(root)

    files = [
        (path, stat.st_mtime)
        for path, stat in walk_project(root, ignore)
        if max_file_size is None or stat.st_size <= max_file_size
    ]
    files.sort(key=lambda item: item[1], reverse=True)
    paths = [path for path, _ in files]
    return paths[:max_results] if max_results else paths


def recent_modified_files(
    root: str | Path, since: datetime, ignore: IgnoreRules | None = None
) -> list[str]:
    """Files modified strictly after since, newest first."""
    if ignore is None:
        ignore = IgnoreRules.from_directory(root)

    threshold = since.timestamp()
    recent = [
        (path, stat.st_mtime)
        for path, stat in walk_project(root, ignore)
        if stat.st_mtime > threshold
    ]
    recent.sort(key=lambda item: item[1], reverse=True)
    return [path for path, _ in recent]
