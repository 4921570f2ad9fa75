"""MiniLM embedding implementation using sentence-transformers."""

import asyncio
from functools import partial
from typing import Any

import numpy as np
import torch
from sentence_transformers import SentenceTransformer  # type: ignore[import-untyped]

from .base import EmbeddingModelError, EmbeddingService, Vector


class MiniLMEmbedding(EmbeddingService):
    """MiniLM embedding service for code chunks and search queries.

    The model is loaded once at construction; encoding runs in the default
    executor so callers on the event loop are never blocked.

    Attributes:
        model: The loaded SentenceTransformer model
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        cache_dir: str | None = None,
    ) -> None:
        """Load the model.

        Args:
            model_name: Hugging Face model id or local path
            cache_dir: Directory for downloaded model files, or None for the
                sentence-transformers default

        Raises:
            EmbeddingModelError: If model loading fails
        """
        self._model_name = model_name
        try:
            self.model = SentenceTransformer(model_name, cache_folder=cache_dir)
            # PyTorch's MPS backend leaks memory during batch encoding.
            if torch.backends.mps.is_available():
                self.model = self.model.to(torch.device("cpu"))
        except Exception as e:
            raise EmbeddingModelError(
                f"Failed to load model {model_name}: {e}"
            ) from e

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        """Vector size reported by the loaded model.

        Returns:
            Number of components in each embedding

        Raises:
            EmbeddingModelError: If the model does not report a dimension
        """
        dim = self.model.get_sentence_embedding_dimension()
        if dim is None:
            raise EmbeddingModelError("Model did not return embedding dimension")
        return int(dim)

    async def embed(self, text: str) -> Vector:
        """Embed one text, typically a search query.

        Args:
            text: Text to embed

        Returns:
            Float32 vector of length ``dimension``

        Raises:
            EmbeddingModelError: If encoding fails
        """
        try:
            loop = asyncio.get_event_loop()
            embedding: Any = await loop.run_in_executor(
                None, partial(self.model.encode, text, convert_to_numpy=True)
            )
            return np.asarray(embedding, dtype=np.float32)
        except Exception as e:
            raise EmbeddingModelError(f"Failed to generate embedding: {e}") from e

    async def embed_batch(self, texts: list[str]) -> list[Vector]:
        """Embed the chunks of a file in one encoder pass.

        Args:
            texts: Texts to embed; an empty list returns immediately

        Returns:
            One float32 vector per input text, in input order

        Raises:
            EmbeddingModelError: If encoding fails
        """
        if not texts:
            return []

        try:
            loop = asyncio.get_event_loop()
            embeddings: Any = await loop.run_in_executor(
                None,
                partial(
                    self.model.encode,
                    texts,
                    convert_to_numpy=True,
                    show_progress_bar=False,
                ),
            )
            return [np.asarray(embedding, dtype=np.float32) for embedding in embeddings]
        except Exception as e:
            raise EmbeddingModelError(
                f"Failed to generate batch embeddings: {e}"
            ) from e
