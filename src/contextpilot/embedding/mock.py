"""Mock embedding implementation for testing and offline use."""

import hashlib
import re

import numpy as np

from .base import EmbeddingService, Vector

_TOKEN_RE = re.compile(r"[A-Za-z0-9_]+")


class MockEmbeddingService(EmbeddingService):
    """Deterministic bag-of-words embeddings.

    Each token is hashed into one of ``dimension`` buckets, so texts sharing
    words get similar vectors. Reproducible and fast without model downloads.
    """

    def __init__(self, dimension: int = 384, model_name: str = "mock") -> None:
        self._dimension = dimension
        self._model_name = model_name
        self.calls = 0

    async def embed(self, text: str) -> Vector:
        self.calls += 1
        return self._text_to_vector(text)

    async def embed_batch(self, texts: list[str]) -> list[Vector]:
        self.calls += len(texts)
        return [self._text_to_vector(text) for text in texts]

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    def _text_to_vector(self, text: str) -> Vector:
        vector = np.zeros(self._dimension, dtype=np.float32)
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], byteorder="big") % self._dimension
            vector[bucket] += 1.0

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector = vector / norm
        return vector
