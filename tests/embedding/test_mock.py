"""Tests for the mock embedder and cosine similarity."""

import numpy as np

from contextpilot.embedding import MockEmbeddingService, cosine_similarity


class TestMockEmbeddingService:
    """Tests for MockEmbeddingService."""

    async def test_deterministic_and_normalized(self) -> None:
        service = MockEmbeddingService(dimension=64)

        first = await service.embed("parse the config file")
        second = await service.embed("parse the config file")

        assert first.shape == (64,)
        assert first.dtype == np.float32
        assert np.allclose(first, second)
        assert np.isclose(np.linalg.norm(first), 1.0)

    async def test_shared_words_are_similar(self) -> None:
        service = MockEmbeddingService()
        query, related, unrelated = await service.embed_batch(
            ["database connection pool", "open a database connection", "render sprite"]
        )

        scores = cosine_similarity(query, np.vstack([related, unrelated]))

        assert scores[0] > scores[1]

    async def test_counts_calls(self) -> None:
        service = MockEmbeddingService()
        await service.embed("a")
        await service.embed_batch(["b", "c"])

        assert service.calls == 3

    async def test_empty_text_is_zero_vector(self) -> None:
        vector = await MockEmbeddingService(dimension=8).embed("")
        assert not vector.any()


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_zero_rows_score_zero(self) -> None:
        query = np.array([1.0, 0.0], dtype=np.float32)
        matrix = np.array([[2.0, 0.0], [0.0, 0.0], [0.0, 3.0]], dtype=np.float32)

        assert np.allclose(cosine_similarity(query, matrix), [1.0, 0.0, 0.0])

    def test_empty_matrix(self) -> None:
        query = np.ones(3, dtype=np.float32)
        empty = np.zeros((0, 3), dtype=np.float32)

        assert cosine_similarity(query, empty).shape == (0,)
