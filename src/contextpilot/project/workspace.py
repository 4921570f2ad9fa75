"""Live project state consumed by the context pipeline."""

import asyncio
import os
from abc import ABC, abstractmethod
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Any

import structlog

from contextpilot.storage.settings import SettingsStore
from contextpilot.utils.platform import get_system_info

from . import files
from .ignore import IgnoreRules

logger = structlog.get_logger(__name__)

PROJECT_STRUCTURE_ROWS_COUNT = 50
MAX_STRUCTURE_DEPTH_INCREASES = 5
CURSOR_RULES_FILE = ".cursorrules"


def instructions_key(project_name: str) -> str:
    return f"project.{project_name}.instructions"


def render_folder_structure(
    root: str | Path, ignore: IgnoreRules, max_depth: int = 1
) -> str:
    """Render an indented ``- name/`` tree down to max_depth levels."""
    lines: list[str] = []

    def visit(directory: str, rel_dir: str, prefix: str, depth: int) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError:
            return
        for entry in entries:
            rel = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            is_dir = entry.is_dir(follow_symlinks=False)
            if ignore.ignores(rel, is_dir=is_dir):
                continue
            lines.append(f"{prefix}- {entry.name}{'/' if is_dir else ''}")
            if is_dir and depth < max_depth:
                visit(entry.path, rel, prefix + "  ", depth + 1)

    visit(str(root), "", "", 1)
    if not lines:
        return "The directory is empty."
    return "\n".join(lines)


class Workspace(ABC):
    """Abstract view of the open project and the agent's shell."""

    @abstractmethod
    async def current_directory(self) -> str:
        """Return the agent's current working directory."""
        ...

    @abstractmethod
    async def folder_structure(self, max_depth: int = 1) -> str | None:
        """Return a rendered project tree, or None without an open project."""
        ...

    @abstractmethod
    async def recent_modified_files(self, since: datetime) -> list[str]:
        """Return absolute paths of project files modified after since."""
        ...

    @property
    def project_root(self) -> str | None:
        return None

    @property
    def project_name(self) -> str | None:
        return None

    @property
    def project_overview(self) -> Any:
        return None

    @property
    def shell_type(self) -> str:
        return get_system_info().shell_type

    def custom_instructions(self) -> str:
        return ""


class LocalWorkspace(Workspace):
    """Workspace backed by a project directory on the local filesystem.

    The working directory starts at the project root and is moved with
    ``set_current_directory`` as the agent's shell changes directory.
    """

    def __init__(
        self,
        root: str | Path,
        settings_store: SettingsStore | None = None,
        project_name: str | None = None,
        cwd: str | Path | None = None,
        shell_type: str | None = None,
    ) -> None:
        self.root = os.path.abspath(str(root))
        self.settings_store = settings_store
        self._project_name = project_name or os.path.basename(self.root)
        self._cwd = os.path.abspath(str(cwd)) if cwd else self.root
        self._shell_type = shell_type
        self._project_overview: Any = None

    @property
    def project_root(self) -> str:
        return self.root

    @property
    def project_name(self) -> str:
        return self._project_name

    @property
    def project_overview(self) -> Any:
        return self._project_overview

    @project_overview.setter
    def project_overview(self, overview: Any) -> None:
        self._project_overview = overview

    @property
    def shell_type(self) -> str:
        return self._shell_type or super().shell_type

    def set_current_directory(self, path: str | Path) -> None:
        self._cwd = files.normalize_path(path, self._cwd)

    async def current_directory(self) -> str:
        return self._cwd

    def ignore_rules(self) -> IgnoreRules:
        return IgnoreRules.from_directory(self.root)

    async def folder_structure(self, max_depth: int = 1) -> str | None:
        """Render the tree, deepening until it has enough rows to be useful."""
        if not os.path.isdir(self.root):
            return None

        loop = asyncio.get_event_loop()
        ignore = await loop.run_in_executor(None, self.ignore_rules)

        depth = max_depth
        structure = await loop.run_in_executor(
            None, render_folder_structure, self.root, ignore, depth
        )
        for _ in range(MAX_STRUCTURE_DEPTH_INCREASES):
            if len(structure.split("\n")) >= PROJECT_STRUCTURE_ROWS_COUNT:
                break
            depth += 1
            deeper = await loop.run_in_executor(
                None, render_folder_structure, self.root, ignore, depth
            )
            if deeper == structure:
                break
            structure = deeper
        return structure

    async def recent_modified_files(self, since: datetime) -> list[str]:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, partial(files.recent_modified_files, self.root, since)
        )

    def custom_instructions(self) -> str:
        """Stored per-project instructions followed by the .cursorrules file."""
        parts: list[str] = []
        if self.settings_store is not None:
            stored = self.settings_store.get(instructions_key(self.project_name), "")
            if stored:
                parts.append(str(stored))

        cursor_rules = Path(self.root) / CURSOR_RULES_FILE
        if cursor_rules.is_file():
            try:
                rules = cursor_rules.read_text(encoding="utf-8")
            except OSError as e:
                logger.warning(
                    "cursor_rules_unreadable", path=str(cursor_rules), error=str(e)
                )
            else:
                if rules:
                    parts.append(rules)

        return "\n\n".join(parts)
