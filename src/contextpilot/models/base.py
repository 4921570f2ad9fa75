"""Model-call collaborator interface.

Provider clients (OpenAI, Anthropic, OpenRouter, ...) live outside this
package and implement ModelClient.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from contextpilot.chat.messages import ToolCall

# Set by the caller to request cancellation of an in-flight model call.
AbortSignal: TypeAlias = asyncio.Event


class ModelCallError(Exception):
    """Raised when a model call fails."""

    pass


class ModelCallAborted(ModelCallError):
    """Raised when a model call was cancelled through its abort signal."""

    pass


@dataclass
class ModelResponse:
    """Response of a single model call."""

    content: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)


class ModelClient(ABC):
    """Abstract single-shot model call over any LLM provider."""

    @abstractmethod
    async def call(
        self,
        messages: list[dict[str, Any]],
        *,
        tool: dict[str, Any] | None = None,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | dict[str, Any] | None = None,
        abort: AbortSignal | None = None,
    ) -> ModelResponse:
        """Execute a model call.

        Args:
            messages: Wire-form messages (role/content/tool_calls dicts)
            tool: A single tool the model must call
            tools: Tools the model may call
            tool_choice: Provider-neutral tool choice hint
            abort: Event that, once set, cancels the call

        Returns:
            ModelResponse with text content and/or tool calls

        Raises:
            ModelCallAborted: If abort was set before or during the call
            ModelCallError: For any other provider failure
        """
        ...
