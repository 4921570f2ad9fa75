"""Rolling summarization of the backend message log."""

import json
from dataclasses import dataclass
from typing import Any

import structlog

from contextpilot.chat.messages import Message, Role, compact_file_operations
from contextpilot.config import ContextSettings, settings
from contextpilot.models.base import AbortSignal
from contextpilot.storage.settings import SettingKey, SettingsStore

from .summarizer import LLMSummarizer
from .tokens import estimate_tokens

logger = structlog.get_logger(__name__)

SUMMARY_PREFIX = (
    "This is for myself. Summary of the conversation so far and what was done:\n"
)


@dataclass
class ReductionState:
    """What has been folded into the rolling summary so far."""

    last_summarized_message_id: int = -1
    past_summarized_messages: str = ""

    @property
    def has_summary(self) -> bool:
        return self.last_summarized_message_id != -1


def format_message_for_summary(message: Message) -> str:
    """Serialize a message into the compact JSON form fed to the summarizer.

    Images are dropped, tool calls keep only their name and target file, and
    tool results are relabelled as user turns.
    """
    fragment_type = "tool_result" if message.role == Role.TOOL else "text"
    content: list[dict[str, Any]] = []

    if isinstance(message.content, list):
        text_content = [
            item
            for item in message.content
            if not (isinstance(item, dict) and item.get("type") == "image_url")
        ]
        if text_content:
            content.append({"type": fragment_type, "content": text_content})
    elif message.content:
        content.append({"type": fragment_type, "content": message.content})

    for call in message.tool_calls:
        tool_use: dict[str, Any] = {"type": "tool_use", "name": call.name}
        target_file = call.target_file()
        if target_file:
            tool_use["targetFile"] = target_file
        content.append(tool_use)

    role = Role.USER if message.role == Role.TOOL else message.role
    return json.dumps({"role": role.value, "content": content}, indent=2)


class ConversationReducer:
    """Keeps the most recent messages verbatim and folds older ones into a summary.

    Summarization is lazy: it runs only once the foldable part of the history
    exceeds ``maxChatHistoryTokens``, and never sooner than
    ``min_messages_between_summarizations`` message ids after the previous
    one. A failed summarization leaves the state untouched and returns the
    unreduced view, so messages are never lost.
    """

    def __init__(
        self,
        summarizer: LLMSummarizer,
        settings_store: SettingsStore | None = None,
        context_settings: ContextSettings | None = None,
    ) -> None:
        self.summarizer = summarizer
        self.settings_store = settings_store
        config = context_settings or settings.context
        self.keep_last_n_messages = config.keep_last_n_messages
        self.min_messages_between_summarizations = (
            config.min_messages_between_summarizations
        )
        self._default_max_chat_history_tokens = config.max_chat_history_tokens
        self.state = ReductionState()

    def reset(self) -> None:
        self.state = ReductionState()

    @property
    def max_chat_history_tokens(self) -> int:
        if self.settings_store is None:
            return self._default_max_chat_history_tokens
        return self.settings_store.get_int(
            SettingKey.MAX_CHAT_HISTORY_TOKENS, self._default_max_chat_history_tokens
        )

    def summary_message(self) -> Message | None:
        if not self.state.past_summarized_messages:
            return None
        return Message(
            role=Role.ASSISTANT,
            content=SUMMARY_PREFIX + self.state.past_summarized_messages,
        )

    def current_messages(self, messages: list[Message]) -> list[Message]:
        """Summary message plus every message not yet folded into it."""
        if not self.state.has_summary:
            return list(messages)

        pending = [
            m
            for m in messages
            if m.id is not None and m.id > self.state.last_summarized_message_id
        ]
        summary = self.summary_message()
        return [summary, *pending] if summary else pending

    async def reduce(
        self, messages: list[Message], abort: AbortSignal | None = None
    ) -> list[Message]:
        """Messages to send in place of the full history.

        Args:
            messages: The full chat log, oldest first; never mutated
            abort: Cancels a summarization in progress when set

        Returns:
            The history unchanged while it fits the budget, otherwise the
            rolling summary message followed by the unsummarized tail
        """
        if not messages:
            return []
        return await self._summarize(compact_file_operations(messages), abort)

    def _summarized_too_recently(self, boundary: Message) -> bool:
        if not self.state.has_summary:
            return False
        last_id = self.state.last_summarized_message_id
        boundary_id = boundary.id if boundary.id is not None else last_id
        return boundary_id - last_id < self.min_messages_between_summarizations

    async def _summarize(
        self, messages: list[Message], abort: AbortSignal | None
    ) -> list[Message]:
        view = self.current_messages(messages)

        split_index = len(view) - self.keep_last_n_messages
        if split_index <= 0:
            return view

        if self._summarized_too_recently(view[split_index - 1]):
            return view

        # Never split a tool call from its results: the kept tail starts on
        # an assistant message.
        while split_index < len(view) and view[split_index].role != Role.ASSISTANT:
            split_index += 1

        folded = [m for m in view[:split_index] if m.id is not None]
        if not folded:
            return view

        history_text = self.state.past_summarized_messages + "".join(
            f"{format_message_for_summary(m)},\n" for m in folded
        )
        token_count = estimate_tokens(history_text)
        max_tokens = self.max_chat_history_tokens
        if token_count <= max_tokens:
            return view

        logger.info(
            "summarization_started",
            folded_messages=len(folded),
            token_count=token_count,
            max_tokens=max_tokens,
        )
        summary = await self.summarizer.summarize(history_text, abort=abort)
        if not summary:
            logger.warning("summarization_skipped", reason="no_summary")
            return view

        self.state = ReductionState(
            last_summarized_message_id=folded[-1].id,  # type: ignore[arg-type]
            past_summarized_messages=summary,
        )
        logger.info(
            "summarization_complete",
            last_summarized_message_id=self.state.last_summarized_message_id,
            summary_tokens=estimate_tokens(summary),
        )
        summary_message = self.summary_message()
        tail = view[split_index:]
        return [summary_message, *tail] if summary_message else tail
