"""Base embedding service interface and types."""

from abc import ABC, abstractmethod

import numpy as np
import numpy.typing as npt

# Vector type alias - numpy array of float32
Vector = npt.NDArray[np.float32]


class EmbeddingModelError(Exception):
    """Raised when embedding model operations fail."""

    pass


class EmbeddingService(ABC):
    """Abstract base class for embedding generation services."""

    @abstractmethod
    async def embed(self, text: str) -> Vector:
        """Generate embedding for a single text.

        Raises:
            EmbeddingModelError: If embedding generation fails
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[Vector]:
        """Generate embeddings for multiple texts, one vector per text.

        Raises:
            EmbeddingModelError: If embedding generation fails
        """
        ...

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Dimensionality of the produced vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Identity of the model behind the vectors.

        Vectors from different models are not comparable, so persisted
        embeddings are keyed by this name together with ``dimension``.
        """
        return type(self).__name__


def cosine_similarity(
    query: Vector, matrix: npt.NDArray[np.float32]
) -> npt.NDArray[np.float32]:
    """Cosine similarity of query against every row of matrix.

    Zero-norm rows score 0.
    """
    if matrix.size == 0:
        return np.zeros(0, dtype=np.float32)
    query_norm = float(np.linalg.norm(query))
    row_norms = np.linalg.norm(matrix, axis=1)
    denominators = row_norms * query_norm
    scores = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        similarities = np.where(denominators > 0, scores / denominators, 0.0)
    return similarities.astype(np.float32)
