"""Chat message model and session log."""

from .messages import (
    Arguments,
    Message,
    ParsedArguments,
    RawArguments,
    Role,
    ToolCall,
    compact_file_operations,
    parse_arguments,
)
from .session import ChatSession

__all__ = [
    "Arguments",
    "ChatSession",
    "Message",
    "ParsedArguments",
    "RawArguments",
    "Role",
    "ToolCall",
    "compact_file_operations",
    "parse_arguments",
]
