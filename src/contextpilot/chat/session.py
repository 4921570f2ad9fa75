"""Per-chat backend message log."""

from typing import Any

from .messages import Message, Role, ToolCall


class ChatSession:
    """Append-only backend message log with a monotonic id counter.

    Ids are never reused within a session, including after ``clear()``.
    """

    def __init__(self, task: str | None = None) -> None:
        self.task = task
        self.messages: list[Message] = []
        self._next_id = 1

    def add_message(
        self,
        role: Role | str,
        content: str | list[dict[str, Any]] | None = None,
        tool_calls: list[ToolCall] | None = None,
        name: str | None = None,
        tool_call_id: str | None = None,
    ) -> Message:
        message = Message(
            role=Role(role),
            content=content,
            id=self._next_id,
            tool_calls=list(tool_calls or []),
            tool_call_id=tool_call_id,
            name=name,
        )
        self._next_id += 1
        self.messages.append(message)
        return message

    @property
    def last_message_id(self) -> int:
        if not self.messages or self.messages[-1].id is None:
            return 0
        return self.messages[-1].id

    def clear(self) -> None:
        self.messages = []
        self.task = None

    def restore(self, messages: list[Message], task: str | None = None) -> None:
        """Replace the log with messages restored from history."""
        self.messages = list(messages)
        self.task = task
        known_ids = [m.id for m in self.messages if m.id is not None]
        self._next_id = max([self._next_id - 1, *known_ids]) + 1
