"""Conversation context pipeline: reduction, file relevance and assembly."""

from .assembler import ContextAssembler
from .files import ContextFiles, reorder_most_recent_last
from .information import InformationGatherer, InformationSource
from .reducer import ConversationReducer, ReductionState, format_message_for_summary
from .summarizer import LLMSummarizer
from .tokens import estimate_tokens

__all__ = [
    "ContextAssembler",
    "ContextFiles",
    "ConversationReducer",
    "InformationGatherer",
    "InformationSource",
    "LLMSummarizer",
    "ReductionState",
    "estimate_tokens",
    "format_message_for_summary",
    "reorder_most_recent_last",
]
