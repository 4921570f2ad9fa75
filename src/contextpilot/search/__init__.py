"""Reranking and file suggestions on top of the embedding index."""

from .rerank import CrossEncoderReranker, Reranker, RerankError, VoyageReranker
from .suggestions import RelevantFilesFinder

__all__ = [
    "CrossEncoderReranker",
    "RelevantFilesFinder",
    "RerankError",
    "Reranker",
    "VoyageReranker",
]
