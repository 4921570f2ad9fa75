"""Named sources of additional information for research prompts."""

from collections.abc import Awaitable, Callable, Iterable
from enum import StrEnum
from typing import TypeAlias

from contextpilot.project.workspace import Workspace

from .files import ContextFiles

RESEARCH_STRUCTURE_DEPTH = 4


class InformationSource(StrEnum):
    """A block of context a research prompt can request."""

    PROJECT_STRUCTURE = "project_structure"
    TASK_DESCRIPTION = "task_description"
    USER_SELECTED_FILES = "user_selected_files"
    ADDITIONAL_CONTEXT = "additional_context"


class InformationGatherer:
    """Renders information sources into tagged prompt blocks."""

    def __init__(
        self,
        workspace: Workspace,
        context_files: ContextFiles | None = None,
        task_description: str | None = None,
        task_context: str | None = None,
    ) -> None:
        self.workspace = workspace
        self.context_files = context_files
        self.task_description = task_description
        self.task_context = task_context

    async def project_structure(self) -> str:
        structure = await self.workspace.folder_structure(RESEARCH_STRUCTURE_DEPTH)
        if not structure:
            return ""
        return f"<projectStructure>\n{structure}\n</projectStructure>"

    async def task_description_block(self) -> str:
        if not self.task_description:
            return ""
        return (
            "Find information for the following task:\n"
            f"<taskDescription>\n{self.task_description}\n</taskDescription>"
        )

    async def user_selected_files(self) -> str:
        if self.context_files is None:
            return ""
        files = self.context_files.enabled_files()
        if not files:
            return ""
        listing = "\n".join(files)
        return (
            "These files are directly relevant:\n"
            f"<userSelectedFiles>\n{listing}\n</userSelectedFiles>"
        )

    async def additional_context(self) -> str:
        if not self.task_context:
            return ""
        return f"<additionalContext>\n{self.task_context}\n</additionalContext>"

    async def gather(
        self, sources: InformationSource | str | Iterable[InformationSource | str]
    ) -> str:
        """Render the requested sources in order, skipping empty ones."""
        if isinstance(sources, str):
            sources = [InformationSource(sources)]
        blocks = [await SOURCES[InformationSource(s)](self) for s in sources]
        return "\n\n".join(block for block in blocks if block)


SourceRenderer: TypeAlias = Callable[[InformationGatherer], Awaitable[str]]

SOURCES: dict[InformationSource, SourceRenderer] = {
    InformationSource.PROJECT_STRUCTURE: InformationGatherer.project_structure,
    InformationSource.TASK_DESCRIPTION: InformationGatherer.task_description_block,
    InformationSource.USER_SELECTED_FILES: InformationGatherer.user_selected_files,
    InformationSource.ADDITIONAL_CONTEXT: InformationGatherer.additional_context,
}
