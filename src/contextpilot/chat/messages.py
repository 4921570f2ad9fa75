"""Backend message types and pure transforms over message lists."""

import json
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, TypeAlias

import structlog

logger = structlog.get_logger(__name__)

FILE_OPERATION_TOOL = "file_operation"
CREATED_CONTENT_PLACEHOLDER = (
    "// File content removed for conciseness. See file content below."
)


class Role(StrEnum):
    """Role of a backend message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ParsedArguments:
    """Tool-call arguments that decoded to a JSON object."""

    value: dict[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.value.get(key, default)


@dataclass(frozen=True)
class RawArguments:
    """Tool-call arguments that could not be decoded; kept verbatim."""

    text: str


Arguments: TypeAlias = ParsedArguments | RawArguments


def parse_arguments(arguments: Any) -> Arguments:
    """Decode tool-call arguments without ever raising.

    Dicts pass through, JSON strings are decoded, anything else is logged and
    returned as RawArguments so callers must handle the unparsed case.
    """
    if isinstance(arguments, dict):
        return ParsedArguments(arguments)

    if isinstance(arguments, str):
        try:
            decoded = json.loads(arguments)
        except json.JSONDecodeError as e:
            logger.warning("tool_arguments_parse_failed", error=str(e))
            return RawArguments(arguments)
        if isinstance(decoded, dict):
            return ParsedArguments(decoded)
        logger.warning(
            "tool_arguments_not_an_object", decoded_type=type(decoded).__name__
        )
        return RawArguments(arguments)

    logger.warning("tool_arguments_unexpected_type", type=type(arguments).__name__)
    return RawArguments("" if arguments is None else str(arguments))


@dataclass
class ToolCall:
    """A model-issued request to invoke a tool."""

    id: str
    name: str
    arguments: dict[str, Any] | str = field(default_factory=dict)

    def parsed_arguments(self) -> Arguments:
        return parse_arguments(self.arguments)

    def target_file(self) -> str | None:
        """Return the targetFile argument, if the call carries one."""
        match self.parsed_arguments():
            case ParsedArguments(value=value):
                target = value.get("targetFile")
                return target if isinstance(target, str) and target else None
            case RawArguments():
                return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolCall":
        function = data.get("function") or {}
        return cls(
            id=str(data.get("id", "")),
            name=str(function.get("name", "")),
            arguments=function.get("arguments", {}),
        )


@dataclass
class Message:
    """A backend message.

    ``id`` is assigned by ChatSession and is None for synthetic messages
    built by the context pipeline.
    """

    role: Role
    content: str | list[dict[str, Any]] | None = None
    id: int | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        self.role = Role(self.role)

    def to_dict(self, include_id: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if include_id and self.id is not None:
            data["id"] = self.id
        if self.tool_calls:
            data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            role=Role(data["role"]),
            content=data.get("content"),
            id=data.get("id"),
            tool_calls=[ToolCall.from_dict(c) for c in data.get("tool_calls") or []],
            tool_call_id=data.get("tool_call_id"),
            name=data.get("name"),
        )


def _compact_tool_call(call: ToolCall) -> ToolCall:
    if call.name != FILE_OPERATION_TOOL:
        return call
    match call.parsed_arguments():
        case ParsedArguments(value=value) if value.get("operation") == "create":
            return replace(
                call, arguments={**value, "content": CREATED_CONTENT_PLACEHOLDER}
            )
        case _:
            return call


def compact_file_operations(messages: list[Message]) -> list[Message]:
    """Replace created-file payloads in file_operation calls with a placeholder.

    Returns a new list; messages that change are copied, the input is never
    mutated.
    """
    result: list[Message] = []
    for message in messages:
        if message.role != Role.ASSISTANT or not message.tool_calls:
            result.append(message)
            continue
        calls = [_compact_tool_call(call) for call in message.tool_calls]
        if any(new is not old for new, old in zip(calls, message.tool_calls)):
            message = replace(message, tool_calls=calls)
        result.append(message)
    return result
