"""Ignore rules shared by file walks, the embedding index and git analysis."""

from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

# Never descended into, regardless of ignore files.
EXCLUDED_DIRS: frozenset[str] = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    ".venv",
    "venv",
    "__pycache__",
    ".tox",
    ".nox",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".eggs",
})

# Patterns excluded from code search in addition to .gitignore.
DEFAULT_IGNORE_TEMPLATE = """
**/node_modules/**
**/package-lock.json

# IDE
**/.vscode/**
**/.idea/**

# Build output
**/build/**
**/dist/**
**/env/**
**/__pycache__/**
**/target/**
**/bin/**
**/obj/**
**/packages/**
**/DerivedData/**
**/pkg/**

# Non-code directories
**/images/**
**/assets/**
**/fonts/**
**/sounds/**
**/docs/**
**/test/**
**/tests/**
**/logs/**
**/database/**
**/vendor/**

# Hidden files and directories
**/.*
**/.*/**
**/.DS_Store
**/.keep

# Python
**/*.cfg
**/*.pyc
**/*.pyo
**/*.pyd
**/*.egg-info/**
**/*.egg
**/*.whl
**/*.ipynb
**/*.ipynb_checkpoints/**
**/site-packages/**

# Compiled and packaged artifacts
**/*.o
**/*.d
**/*.a
**/*.h
**/*.out
**/*.class
**/*.jar
**/*.war
**/*.ear
**/*.app
**/*.ipa
**/*.dSYM/**
**/*.gem
**/*.rbc
**/*.phar

# Temporary files and logs
**/*~
**/*.tmp
**/*.swp
**/*.swo
**/*.log
**/*.sqlite3
**/*.sqlite3-journal
**/*.xcuserstate
**/Thumbs.db
**/Desktop.ini

# Data, documents and media
**/*.csv
**/*.txt
**/*.pdf
**/*.doc
**/*.docx
**/*.xls
**/*.xlsx
**/*.ppt
**/*.pptx
**/*.jpg
**/*.jpeg
**/*.png
**/*.gif
**/*.bmp
**/*.svg
**/*.ico
**/*.mp3
**/*.wav
**/*.mp4
**/*.avi
**/*.flv
**/*.zip
**/*.tar.gz
**/*.rar

# Certificates
**/*.cert
**/*.pem
**/*.crt
"""


def _compile(pattern: str) -> list[tuple[str, bool]]:
    """Translate one gitignore-style line into (glob, directory_only) pairs.

    ``fnmatch`` lets ``*`` cross path separators, so ``**`` behaves like
    ``*`` and unanchored patterns are matched at any depth via ``**/``.
    """
    line = pattern.strip()
    if not line or line.startswith("#"):
        return []
    if line.startswith("!"):
        logger.debug("ignore_negation_unsupported", pattern=line)
        return []

    directory_only = line.endswith("/")
    line = line.rstrip("/")
    anchored = "/" in line
    line = line.lstrip("/")
    if not line:
        return []

    bases = [line] if anchored else [line, f"**/{line}"]
    if line.startswith("**/"):
        bases.append(line[3:])

    globs: list[tuple[str, bool]] = []
    for base in bases:
        if base.endswith("/**"):
            # "dir/**" also names the directory itself.
            globs.append((base[:-3], True))
            globs.append((base, False))
        else:
            globs.append((base, directory_only))
            globs.append((f"{base}/*", False))
    return globs


class IgnoreRules:
    """Gitignore-style matcher over project-relative POSIX paths.

    Negated patterns are not supported and are skipped.
    """

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.patterns: list[str] = []
        self._globs: list[tuple[str, bool]] = []
        self.add(patterns)

    def add(self, patterns: Iterable[str] | str) -> "IgnoreRules":
        if isinstance(patterns, str):
            patterns = patterns.splitlines()
        for pattern in patterns:
            compiled = _compile(pattern)
            if compiled:
                self.patterns.append(pattern.strip())
                self._globs.extend(compiled)
        return self

    @classmethod
    def from_directory(
        cls, root: str | Path, include_defaults: bool = True
    ) -> "IgnoreRules":
        """Rules from .gitignore, LFS-tracked patterns and the default template."""
        root = Path(root)
        rules = cls()

        gitignore = root / ".gitignore"
        if gitignore.is_file():
            rules.add(_read_lines(gitignore))

        gitattributes = root / ".gitattributes"
        if gitattributes.is_file():
            rules.add(
                line.split()[0]
                for line in _read_lines(gitattributes)
                if "filter=lfs" in line and line.split()
            )

        if include_defaults:
            rules.add(DEFAULT_IGNORE_TEMPLATE)
        return rules

    def ignores(self, relative_path: str, is_dir: bool = False) -> bool:
        path = relative_path.replace("\\", "/").strip("/")
        if path.startswith("./"):
            path = path[2:]
        if not path or path == ".":
            return False

        parts = path.split("/")
        dir_parts = parts if is_dir else parts[:-1]
        if any(part in EXCLUDED_DIRS for part in dir_parts):
            return True

        return any(
            fnmatch(path, glob)
            for glob, directory_only in self._globs
            if is_dir or not directory_only
        )

    def filter(self, relative_paths: Iterable[str]) -> list[str]:
        return [p for p in relative_paths if not self.ignores(p)]


def _read_lines(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        logger.warning("ignore_file_unreadable", path=str(path), error=str(e))
        return []
