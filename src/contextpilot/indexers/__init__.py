"""Embedding index for semantic code search."""

from .chunking import Chunk, chunk_file
from .index import CodeSearchResult, EmbeddingIndex, EmbeddingIndexError
from .records import EmbeddingRecord, IndexFormatError, iter_records, save_records
from .utils import compute_content_hash, language_for_path

__all__ = [
    "Chunk",
    "CodeSearchResult",
    "EmbeddingIndex",
    "EmbeddingIndexError",
    "EmbeddingRecord",
    "IndexFormatError",
    "chunk_file",
    "compute_content_hash",
    "iter_records",
    "language_for_path",
    "save_records",
]
