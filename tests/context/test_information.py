"""Tests for InformationGatherer."""

from pathlib import Path

from contextpilot.context import ContextFiles, InformationGatherer, InformationSource
from contextpilot.project.workspace import LocalWorkspace


async def test_gathers_sources_in_order(tmp_path: Path) -> None:
    (tmp_path / "app.py").write_text("x = 1\n")
    workspace = LocalWorkspace(tmp_path)
    files = ContextFiles(workspace)
    await files.add("app.py")
    gatherer = InformationGatherer(
        workspace, files, task_description="Add caching", task_context="Use redis"
    )

    result = await gatherer.gather(
        [
            InformationSource.TASK_DESCRIPTION,
            "user_selected_files",
            InformationSource.PROJECT_STRUCTURE,
            InformationSource.ADDITIONAL_CONTEXT,
        ]
    )

    blocks = result.split("\n\n")
    assert blocks[0].endswith("<taskDescription>\nAdd caching\n</taskDescription>")
    assert f"<userSelectedFiles>\n{tmp_path / 'app.py'}\n" in blocks[1]
    assert blocks[2] == "<projectStructure>\n- app.py\n</projectStructure>"
    assert blocks[3] == "<additionalContext>\nUse redis\n</additionalContext>"


async def test_single_source_string(tmp_path: Path) -> None:
    gatherer = InformationGatherer(LocalWorkspace(tmp_path), task_context="notes")

    assert await gatherer.gather("additional_context") == (
        "<additionalContext>\nnotes\n</additionalContext>"
    )


async def test_empty_sources_skipped(tmp_path: Path) -> None:
    gatherer = InformationGatherer(LocalWorkspace(tmp_path / "missing"))

    result = await gatherer.gather(list(InformationSource))

    assert result == ""
