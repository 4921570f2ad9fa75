"""Token estimation for context budgeting."""

import json
from typing import Any

from contextpilot.chat.messages import Message

CHARS_PER_TOKEN = 4


def estimate_tokens(content: Any) -> int:
    """Estimate token count (4 chars per token heuristic).

    Accepts strings, messages, lists of either, or any JSON-serializable
    value.
    """
    if content is None:
        return 0
    if isinstance(content, str):
        return len(content) // CHARS_PER_TOKEN
    if isinstance(content, Message):
        return estimate_tokens(json.dumps(content.to_dict(include_id=False)))
    if isinstance(content, list | tuple):
        return sum(estimate_tokens(item) for item in content)
    return estimate_tokens(json.dumps(content, default=str))

