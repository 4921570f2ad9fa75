"""Assembly of the final message list for an agent model call."""

import json
from collections.abc import Callable
from datetime import date
from typing import Any

import structlog

from contextpilot.chat.messages import Message, Role
from contextpilot.chat.session import ChatSession
from contextpilot.models.base import AbortSignal
from contextpilot.project.workspace import Workspace
from contextpilot.utils.platform import SystemInfo, get_system_info

from .files import ContextFiles
from .prompts import STATE_MESSAGE_PREFIX, TASK_EXECUTION_PROMPT_TEMPLATE
from .reducer import ConversationReducer

logger = structlog.get_logger(__name__)


def fill_template(template: str, values: dict[str, str]) -> str:
    """Replace every ``{name}`` placeholder; other braces are left alone."""
    for name, value in values.items():
        template = template.replace(f"{{{name}}}", value)
    return template


class ContextAssembler:
    """Builds the ordered wire-form messages sent with each agent turn.

    Order: system prompt, reduced history, task message, then an assistant
    "state" message with file contents and project state. The state message
    goes before a trailing user message so the user's latest intent stays
    last.
    """

    def __init__(
        self,
        session: ChatSession,
        workspace: Workspace,
        reducer: ConversationReducer,
        context_files: ContextFiles,
        system_info: SystemInfo | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.session = session
        self.workspace = workspace
        self.reducer = reducer
        self.context_files = context_files
        self.system_info = system_info or get_system_info()
        self.today = today

    def reset(self) -> None:
        """Clear the chat together with everything derived from it."""
        self.session.clear()
        self.reducer.reset()
        self.context_files.clear()

    def restore(self, messages: list[Message], task: str | None = None) -> None:
        self.session.restore(messages, task)
        self.reducer.reset()
        self.context_files.clear()

    async def build(self, abort: AbortSignal | None = None) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = [self.system_message()]

        history = await self.reducer.reduce(self.session.messages, abort=abort)
        messages.extend(m.to_dict(include_id=False) for m in history)

        if self.session.task:
            messages.append({"role": Role.USER.value, "content": self.session.task})

        state = await self.current_state_message(abort=abort)
        if messages[-1]["role"] == Role.USER.value:
            messages.insert(len(messages) - 1, state)
        else:
            messages.append(state)

        logger.debug(
            "context_assembled",
            messages=len(messages),
            history=len(history),
            session_messages=len(self.session.messages),
        )
        return messages

    def system_message(self) -> dict[str, Any]:
        content = (
            TASK_EXECUTION_PROMPT_TEMPLATE
            + self.project_overview_block()
            + self.custom_instructions_block()
        )
        content = fill_template(
            content,
            {
                "osName": self.system_info.describe(),
                "shellType": self.workspace.shell_type,
                "currentDate": self.today().isoformat(),
                "country": self.system_info.country or "unknown",
            },
        )
        return {"role": Role.SYSTEM.value, "content": content}

    def project_overview_block(self) -> str:
        overview = self.workspace.project_overview
        if not overview:
            return ""
        text = overview if isinstance(overview, str) else json.dumps(overview, indent=2)
        return f"\n\n<project_overview>\n{text}\n</project_overview>\n"

    def custom_instructions_block(self) -> str:
        instructions = self.workspace.custom_instructions()
        if not instructions:
            return ""
        return (
            "\n\n<project_user_instructions>\n"
            f"{instructions}\n\n"
            "</project_user_instructions>"
        )

    async def project_state(self) -> str:
        cwd = await self.workspace.current_directory()
        text = (
            f'Current base directory is now: "{cwd}". '
            'Do not "cd" to this location since you are already here.\n'
        )
        if self.workspace.project_root:
            structure = await self.workspace.folder_structure()
            if structure:
                text += f"\n<top_level_files>\n{structure}\n</top_level_files>\n"
        return f"\n<current_project_state>\n{text}\n</current_project_state>\n"

    async def current_state_message(
        self, abort: AbortSignal | None = None
    ) -> dict[str, Any]:
        await self.context_files.update_from_chat(
            self.session.messages, task=self.session.task, abort=abort
        )
        files_contents = await self.context_files.files_contents(self.session.messages)
        project_state = await self.project_state()
        content = "\n\n".join(
            [STATE_MESSAGE_PREFIX, files_contents, project_state]
        ).strip()
        return {"role": Role.ASSISTANT.value, "content": content}
