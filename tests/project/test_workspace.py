"""Tests for LocalWorkspace."""

import os
from datetime import UTC, datetime
from pathlib import Path

from contextpilot.project.ignore import IgnoreRules
from contextpilot.project.workspace import (
    LocalWorkspace,
    instructions_key,
    render_folder_structure,
)
from contextpilot.storage.settings import MemorySettingsStore


class TestRenderFolderStructure:
    """Tests for the folder tree rendering."""

    def test_depth_limited_tree(self, tmp_path: Path) -> None:
        (tmp_path / "src" / "pkg").mkdir(parents=True)
        (tmp_path / "src" / "pkg" / "mod.py").write_text("")
        (tmp_path / "README.md").write_text("")

        assert render_folder_structure(tmp_path, IgnoreRules(), 1) == (
            "- README.md\n- src/"
        )
        assert render_folder_structure(tmp_path, IgnoreRules(), 3) == (
            "- README.md\n- src/\n  - pkg/\n    - mod.py"
        )

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert render_folder_structure(tmp_path, IgnoreRules(), 2) == (
            "The directory is empty."
        )


class TestLocalWorkspace:
    """Tests for LocalWorkspace."""

    async def test_current_directory_tracking(self, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        workspace = LocalWorkspace(tmp_path)

        assert await workspace.current_directory() == str(tmp_path)
        workspace.set_current_directory("src")
        assert await workspace.current_directory() == str(tmp_path / "src")
        assert workspace.project_root == str(tmp_path)
        assert workspace.project_name == tmp_path.name

    async def test_folder_structure_deepens_small_projects(
        self, tmp_path: Path
    ) -> None:
        deep = tmp_path / "a" / "b" / "c"
        deep.mkdir(parents=True)
        (deep / "leaf.py").write_text("")

        structure = await LocalWorkspace(tmp_path).folder_structure()

        assert structure == "- a/\n  - b/\n    - c/\n      - leaf.py"

    async def test_folder_structure_stops_at_enough_rows(
        self, tmp_path: Path
    ) -> None:
        for i in range(60):
            (tmp_path / f"module_{i:02d}.py").write_text("")
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "hidden_by_depth.py").write_text("")

        structure = await LocalWorkspace(tmp_path).folder_structure()

        assert structure is not None
        assert "- pkg/" in structure
        assert "hidden_by_depth.py" not in structure

    async def test_folder_structure_honors_ignore_rules(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("generated/\n")
        (tmp_path / "generated").mkdir()
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "main.py").write_text("")

        assert await LocalWorkspace(tmp_path).folder_structure() == "- main.py"

    async def test_missing_root(self, tmp_path: Path) -> None:
        workspace = LocalWorkspace(tmp_path / "gone")
        assert await workspace.folder_structure() is None

    async def test_recent_modified_files(self, tmp_path: Path) -> None:
        path = tmp_path / "main.py"
        path.write_text("")
        os.utime(path, (2_000_000, 2_000_000))

        recent = await LocalWorkspace(tmp_path).recent_modified_files(
            datetime.fromtimestamp(1_000_000, tz=UTC)
        )

        assert recent == [str(path)]

    def test_custom_instructions(self, tmp_path: Path) -> None:
        (tmp_path / ".cursorrules").write_text("Prefer small functions.")
        store = MemorySettingsStore(
            {instructions_key("demo"): "Always write tests."}
        )
        workspace = LocalWorkspace(tmp_path, settings_store=store, project_name="demo")

        assert workspace.custom_instructions() == (
            "Always write tests.\n\nPrefer small functions."
        )

    def test_no_custom_instructions(self, tmp_path: Path) -> None:
        assert LocalWorkspace(tmp_path).custom_instructions() == ""

    def test_shell_type_override(self, tmp_path: Path) -> None:
        assert LocalWorkspace(tmp_path, shell_type="fish").shell_type == "fish"
