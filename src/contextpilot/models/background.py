"""Constrained single-shot model calls with a typed result."""

from typing import Any

import structlog

from contextpilot.chat.messages import ParsedArguments

from .base import AbortSignal, ModelCallAborted, ModelClient

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = "Provide result back in a tool call"
RESPOND_TOOL_NAME = "respond"

STRING_FORMAT: dict[str, Any] = {"type": "string"}
STRING_LIST_FORMAT: dict[str, Any] = {"type": "array", "items": {"type": "string"}}

_JSON_TYPES: dict[str, type | tuple[type, ...]] = {
    "string": str,
    "array": list,
    "object": dict,
    "boolean": bool,
    "integer": int,
    "number": (int, float),
}


def _matches_format(value: Any, format: dict[str, Any]) -> bool:
    expected = _JSON_TYPES.get(format.get("type", ""))
    if expected is None:
        return True
    if not isinstance(value, expected):
        return False
    if format.get("type") == "array" and isinstance(format.get("items"), dict):
        return all(_matches_format(item, format["items"]) for item in value)
    return True


class BackgroundTask:
    """Runs a prompt through a lightweight model and returns a typed value.

    The model is forced to answer through a ``respond`` tool whose ``result``
    property has the requested JSON-schema format. Every failure returns
    None; callers treat that as "enhancement unavailable".
    """

    def __init__(self, client: ModelClient | None) -> None:
        self.client = client

    def build_messages(self, prompt: str) -> list[dict[str, Any]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def build_tool(self, format: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": RESPOND_TOOL_NAME,
            "parameters": {
                "type": "object",
                "properties": {"result": format},
                "required": ["result"],
            },
        }

    async def run(
        self,
        prompt: str,
        format: dict[str, Any],
        abort: AbortSignal | None = None,
    ) -> Any | None:
        if self.client is None:
            logger.warning("background_task_no_client")
            return None

        try:
            response = await self.client.call(
                self.build_messages(prompt),
                tool=self.build_tool(format),
                abort=abort,
            )
        except ModelCallAborted:
            logger.info("background_task_aborted")
            return None
        except Exception as e:
            logger.warning(
                "background_task_failed", error=str(e), error_type=type(e).__name__
            )
            return None

        if not response.tool_calls:
            logger.warning("background_task_no_tool_call")
            return None

        match response.tool_calls[0].parsed_arguments():
            case ParsedArguments(value=value) if "result" in value:
                result = value["result"]
            case _:
                logger.warning("background_task_missing_result")
                return None

        if not _matches_format(result, format):
            logger.warning(
                "background_task_format_mismatch",
                expected=format.get("type"),
                actual=type(result).__name__,
            )
            return None
        return result
