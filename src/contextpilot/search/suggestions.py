"""Relevant-file suggestions for a draft user message."""

import os
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from contextpilot.context.files import ContextFiles
    from contextpilot.indexers.index import EmbeddingIndex

logger = structlog.get_logger(__name__)

MIN_QUERY_LENGTH = 4
QUERY_SUFFIX = " relevant files"


class RelevantFilesFinder:
    """Suggests project files for the message a user is composing."""

    def __init__(
        self, index: "EmbeddingIndex", context_files: "ContextFiles | None" = None
    ) -> None:
        self.index = index
        self.context_files = context_files

    async def suggest(self, message: str, count: int = 6) -> dict[str, str]:
        """Map display name to absolute path for the top matching files.

        Files already enabled in the working set are not suggested again.
        """
        message = message.strip()
        if len(message) < MIN_QUERY_LENGTH:
            return {}

        try:
            filenames = await self.index.search(
                message + QUERY_SUFFIX, filenames_only=True
            )
        except Exception as e:
            logger.warning("file_suggestions_failed", error=str(e))
            return {}

        enabled: set[str] = set()
        if self.context_files is not None:
            enabled = set(self.context_files.enabled_files())

        suggestions: dict[str, str] = {}
        for relative in filenames:
            path = os.path.normpath(os.path.join(self.index.project_root, relative))
            if path in enabled:
                continue
            name = os.path.basename(path)
            # Same basename in two directories: fall back to the relative path.
            key = relative if name in suggestions else name
            suggestions[key] = path
            if len(suggestions) >= count:
                break
        return suggestions
