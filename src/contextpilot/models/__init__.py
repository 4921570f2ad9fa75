"""Model-call collaborators."""

from .background import STRING_FORMAT, STRING_LIST_FORMAT, BackgroundTask
from .base import (
    AbortSignal,
    ModelCallAborted,
    ModelCallError,
    ModelClient,
    ModelResponse,
)

__all__ = [
    "AbortSignal",
    "BackgroundTask",
    "ModelCallAborted",
    "ModelCallError",
    "ModelClient",
    "ModelResponse",
    "STRING_FORMAT",
    "STRING_LIST_FORMAT",
]
