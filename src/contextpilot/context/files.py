"""Working set of files whose contents are injected into model context."""

import asyncio
import json
import os
from collections.abc import Iterable
from datetime import UTC, datetime

import structlog

from contextpilot.chat.messages import Message, Role
from contextpilot.config import ContextSettings, settings
from contextpilot.git.coedit import CoEditAnalyzer
from contextpilot.models.background import STRING_LIST_FORMAT, BackgroundTask
from contextpilot.models.base import AbortSignal
from contextpilot.project.files import normalize_path, read_code_file
from contextpilot.project.workspace import Workspace
from contextpilot.storage.settings import SettingKey, SettingsStore

from .tokens import estimate_tokens

logger = structlog.get_logger(__name__)

RELEVANT_FILES_FORMAT = {
    **STRING_LIST_FORMAT,
    "description": "Array of ALL file paths, ordered by priority (most relevant first)",
}

SELECT_FILES_PROMPT = """
AI coding assistant is helping user with a task.
{task}Here is the conversation so far and what was done:
<message_history>
{history}
</message_history>

<list_of_edited_files>
{files}
</list_of_edited_files>

Strictly from <list_of_edited_files> return only the files that are most relevant and important for the current task.
Exclude files that are not directly related or needed.

To determine which files to include, use this reasoning:
1. Files that were most recently accessed or mentioned in the conversation (check bottom of message_history)
2. Files that contain code or content directly related to what's being discussed or modified
3. Files that provide important context or dependencies for the current task
4. Configuration files only if they need to be modified for the task

Important:
- Return files in priority order (most important first)
- Keep exact file paths as provided, do not modify or shorten them
"""


def reorder_most_recent_last(
    enabled_files: list[str], recently_accessed: list[str]
) -> list[str]:
    """Move recently accessed enabled files to the end, keeping last occurrences.

    >>> reorder_most_recent_last(["a", "b", "c"], ["b"])
    ['a', 'c', 'b']
    """
    enabled = set(enabled_files)
    accessed = set(recently_accessed)
    ordered = [f for f in enabled_files if f not in accessed] + [
        f for f in recently_accessed if f in enabled
    ]
    # Dedupe keeping the last occurrence of each file.
    return list(reversed(dict.fromkeys(reversed(ordered))))


class ContextFiles:
    """Enabled/disabled file set for the current task.

    Enabled files have their full content included in context; disabled
    files are listed as path hints only. Insertion order approximates
    relevance, most recently touched last.
    """

    def __init__(
        self,
        workspace: Workspace,
        background_task: BackgroundTask | None = None,
        co_edit_analyzer: CoEditAnalyzer | None = None,
        settings_store: SettingsStore | None = None,
        context_settings: ContextSettings | None = None,
    ) -> None:
        self.workspace = workspace
        self.background_task = background_task
        self.co_edit_analyzer = co_edit_analyzer
        self.settings_store = settings_store
        self.config = context_settings or settings.context
        self.files: dict[str, bool] = {}
        self.last_message_id_for_relevant_files = 0
        self.last_edited_files_check = datetime.now(UTC)
        self.last_files_reduction_message_id = 0

    def clear(self) -> None:
        self.files = {}
        self.last_message_id_for_relevant_files = 0
        self.last_edited_files_check = datetime.now(UTC)
        self.last_files_reduction_message_id = 0

    @property
    def max_task_context_files_tokens(self) -> int:
        default = self.config.max_task_context_files_tokens
        if self.settings_store is None:
            return default
        return self.settings_store.get_int(
            SettingKey.MAX_TASK_CONTEXT_FILES_TOKENS, default
        )

    # Tracking

    async def _normalize(self, paths: Iterable[str]) -> list[str]:
        cwd = await self.workspace.current_directory()
        return [normalize_path(p, cwd) for p in paths]

    async def _normalize_existing(self, paths: Iterable[str]) -> list[str]:
        return [p for p in await self._normalize(paths) if os.path.isfile(p)]

    async def add(self, paths: str | Iterable[str], enabled: bool = True) -> list[str]:
        """Track paths with the given flag; missing files are dropped.

        Adding a single file to a small working set also seeds files that
        are historically co-edited with it, as disabled hints.

        Args:
            paths: One path or several, absolute or relative to the
                workspace's current directory
            enabled: Whether the files' contents go into context

        Returns:
            The normalized absolute paths that exist and were tracked
        """
        requested = [paths] if isinstance(paths, str) else list(paths)
        normalized = await self._normalize_existing(requested)
        for path in normalized:
            self.files[path] = enabled

        if (
            len(requested) == 1
            and normalized
            and len(self.files) < self.config.co_edit_lookup_max_files
        ):
            await self.seed_co_edited_files(normalized[0])
        return normalized

    async def seed_co_edited_files(self, path: str) -> list[str]:
        """Prepend untracked co-edited files of path as disabled entries."""
        if self.co_edit_analyzer is None:
            return []
        try:
            co_edited = await self.co_edit_analyzer.find_co_edited_files([path])
        except Exception as e:
            logger.warning("co_edit_lookup_failed", path=path, error=str(e))
            return []

        candidates = await self._normalize_existing(co_edited)
        seeds = [f for f in candidates if f not in self.files]
        seeds = seeds[: self.config.co_edit_seed_count]
        if seeds:
            self.files = {**dict.fromkeys(seeds, False), **self.files}
            logger.debug("co_edited_files_seeded", path=path, seeds=seeds)
        return seeds

    def remove_non_existent(self) -> None:
        missing = [f for f in self.files if not os.path.isfile(f)]
        for path in missing:
            del self.files[path]
        if missing:
            logger.debug("context_files_pruned", removed=len(missing))

    def enabled_files(self) -> list[str]:
        self.remove_non_existent()
        return [f for f, enabled in self.files.items() if enabled]

    def disabled_files(self) -> list[str]:
        self.remove_non_existent()
        return [f for f, enabled in self.files.items() if not enabled]

    def all_files(self) -> dict[str, bool]:
        self.remove_non_existent()
        return dict(self.files)

    def is_enabled(self, path: str) -> bool:
        return self.files.get(path, False)

    def disable_all(self) -> None:
        self.files = dict.fromkeys(self.files, False)

    async def chat_interaction_files(
        self, messages: list[Message], exclude_processed: bool = True
    ) -> list[str]:
        """Target files of assistant tool calls, newest calls since the last check."""
        candidates = [
            m for m in messages if m.role == Role.ASSISTANT and m.tool_calls
        ]
        if exclude_processed:
            watermark = self.last_message_id_for_relevant_files
            candidates = [
                m for m in candidates if m.id is not None and m.id > watermark
            ]
            last_id = messages[-1].id if messages else None
            self.last_message_id_for_relevant_files = last_id or 0

        targets = [
            target
            for message in candidates
            for call in message.tool_calls
            if (target := call.target_file())
        ]
        return await self._normalize(targets)

    async def update_from_chat(
        self,
        messages: list[Message],
        task: str | None = None,
        abort: AbortSignal | None = None,
    ) -> list[str]:
        """Refresh the working set from the chat and on-disk edits.

        Files named by assistant tool calls since the last refresh are
        enabled. Files modified on disk since the last check are offered to
        the lightweight model, and the ones it picks are enabled too. Model
        failures or an abort only skip that selection.

        Args:
            messages: The full chat log
            task: Current task description, shown to the model
            abort: Cancels the model call when set

        Returns:
            Enabled files, most recently chat-referenced last
        """
        self.remove_non_existent()
        chat_files = await self.chat_interaction_files(messages)

        since = self.last_edited_files_check
        self.last_edited_files_check = datetime.now(UTC)
        try:
            edited_files = await self.workspace.recent_modified_files(since)
        except Exception as e:
            logger.warning("recent_files_lookup_failed", error=str(e))
            edited_files = []

        await self.add(chat_files, True)

        new_edited_files = [f for f in edited_files if not self.is_enabled(f)]
        if new_edited_files:
            relevant = await self.select_important_files(
                messages, new_edited_files, task=task, abort=abort
            )
            if relevant:
                await self.add(relevant, True)

        ordered = reorder_most_recent_last(self.enabled_files(), chat_files)
        ordered_set = set(ordered)
        self.files = {
            **{f: v for f, v in self.files.items() if f not in ordered_set},
            **{f: self.files.get(f, False) for f in ordered},
        }
        return ordered

    async def select_important_files(
        self,
        messages: list[Message],
        candidates: list[str],
        task: str | None = None,
        abort: AbortSignal | None = None,
    ) -> list[str]:
        """Ask the lightweight model which edited files matter for the task.

        Only paths from candidates are accepted; any failure selects nothing.
        """
        if self.background_task is None or not candidates:
            return []

        history = [
            m.to_dict(include_id=False) for m in messages if m.role != Role.SYSTEM
        ]
        task_block = f"<task>\n{task}\n</task>\n" if task else ""
        prompt = SELECT_FILES_PROMPT.format(
            task=task_block,
            history=json.dumps(history, indent=2, default=str),
            files="\n".join(candidates),
        )

        result = await self.background_task.run(
            prompt, RELEVANT_FILES_FORMAT, abort=abort
        )
        if not result:
            return []

        allowed = set(candidates)
        selected = [p for p in dict.fromkeys(result) if p in allowed]
        rejected = len(result) - len(selected)
        if rejected:
            logger.debug("relevant_files_rejected", rejected=rejected)
        return selected

    # Contents

    async def read_files(self, paths: list[str]) -> str:
        loop = asyncio.get_event_loop()
        blocks: list[str] = []
        for path in paths:
            result = await loop.run_in_executor(None, read_code_file, path)
            if result.error is not None:
                blocks.append(
                    f'\n<file_content file="{path}" error="{result.error}">\n'
                )
            else:
                blocks.append(
                    f'\n<file_content file="{path}">\n{result.content}\n</file_content>'
                )
        return "\n\n".join(blocks)

    def remove_files_to_meet_token_limit(self, files: list[str]) -> list[str]:
        """Choose which enabled files stay enabled under the token budget.

        The last ``min_kept_files`` always stay. Earlier files are added
        newest first until one does not fit; unreadable files are skipped.

        Args:
            files: Enabled files, least recently used first

        Returns:
            The files to keep, in their original order
        """
        min_files = self.config.min_kept_files
        budget = self.max_task_context_files_tokens
        kept = files[-min_files:]

        def file_tokens(path: str) -> int | None:
            result = read_code_file(path)
            return None if result.content is None else estimate_tokens(result.content)

        total = sum(file_tokens(f) or 0 for f in kept)
        for path in reversed(files[:-min_files]):
            tokens = file_tokens(path)
            if tokens is None:
                continue
            if total + tokens > budget:
                break
            kept.insert(0, path)
            total += tokens
        return kept

    async def _reduce_files_context(
        self, contents: str, files: list[str], messages: list[Message]
    ) -> str:
        last_message_id = (messages[-1].id if messages else None) or 0
        since_last_reduction = last_message_id - self.last_files_reduction_message_id
        if (
            estimate_tokens(contents) <= self.max_task_context_files_tokens
            or len(files) <= self.config.min_kept_files
            or since_last_reduction < self.config.messages_between_file_reductions
        ):
            return contents

        self.last_files_reduction_message_id = last_message_id
        loop = asyncio.get_event_loop()
        kept = await loop.run_in_executor(
            None, self.remove_files_to_meet_token_limit, files
        )
        self.disable_all()
        for path in kept:
            self.files[path] = True
        logger.info(
            "context_files_trimmed",
            kept=len(kept),
            disabled=len(files) - len(kept),
            budget=self.max_task_context_files_tokens,
        )
        return await self.read_files(kept)

    async def files_contents(self, messages: list[Message]) -> str:
        """Render disabled files as hints and enabled files with their content.

        When the contents exceed the token budget and enough messages have
        passed since the last trim, older files are disabled first.

        Args:
            messages: The full chat log, used to space out trims

        Returns:
            The context block, or "" when no file is enabled
        """
        enabled = self.enabled_files()
        if not enabled:
            return ""

        contents = await self.read_files(enabled)
        contents = await self._reduce_files_context(contents, enabled, messages)
        disabled = self.disabled_files()

        result = ""
        if disabled:
            hints = "\n".join(disabled)
            result += (
                "\n\nList of existing files that might be helpful "
                "(read them if needed):\n"
                "<potentially_relevant_files>\n"
                f"{hints}\n</potentially_relevant_files>\n"
            )
        if contents:
            result += (
                "\nCurrent content of the files (do not read files listed below and "
                "trust the content as the most current since it could have been "
                "modified outside of chat):\n"
                f"<current_files_contents>\n{contents}\n</current_files_contents>"
            )
        return result
