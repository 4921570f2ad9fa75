"""Background summarization of folded conversation history."""

import structlog

from contextpilot.models.background import STRING_FORMAT, BackgroundTask
from contextpilot.models.base import AbortSignal

logger = structlog.get_logger(__name__)

SUMMARIZE_PROMPT = """
You are a conversation summarizer.

Compress conversation_history without losing important information.

Follow these rules for summarization:
  - Preserve each message and order of messages.
  - Preserve each message word for word without alteration for "user" message content that is not a type of "tool_result".
  - Compress assistant messages into maximum 3 sentences.
  - Extract only meaningful content from tool calls and tool results.
  - Preserve only important information from search results.
  - Compress results of terminal commands into maximum 3 sentences.
  - Preserve file names and actions performed on them and what was changed.

Important:
 - Do not use words like "tool_use", "tool_result", "tool_call", etc. Just use natural language to describe actions.
 - Do not use JSON format, just use natural language in sentences.
 - For assistant "think" extract "thought" word for word without alteration.
"""

SUMMARY_FORMAT = {**STRING_FORMAT, "description": "The summarized conversation."}


class LLMSummarizer:
    """Compresses serialized history into plain prose via a background task."""

    def __init__(self, background_task: BackgroundTask) -> None:
        self.background_task = background_task

    def build_prompt(self, conversation_history: str) -> str:
        return (
            f"{SUMMARIZE_PROMPT}\n\n"
            "Compress the following conversation history:\n"
            f"<conversation_history>\n{conversation_history}\n</conversation_history>"
        )

    async def summarize(
        self, conversation_history: str, abort: AbortSignal | None = None
    ) -> str | None:
        """Return the summary, or None when the background task failed."""
        try:
            content = await self.background_task.run(
                self.build_prompt(conversation_history), SUMMARY_FORMAT, abort=abort
            )
        except Exception as e:
            logger.error("summarization_failed", error=str(e))
            return None

        if not content or not content.strip():
            logger.warning("summarization_empty")
            return None
        return content
