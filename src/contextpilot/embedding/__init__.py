"""Embedding services for contextpilot."""

from .base import EmbeddingModelError, EmbeddingService, Vector, cosine_similarity
from .mock import MockEmbeddingService
from .registry import EmbeddingRegistry

__all__ = [
    "EmbeddingModelError",
    "EmbeddingRegistry",
    "EmbeddingService",
    "MockEmbeddingService",
    "Vector",
    "cosine_similarity",
]
