"""Tests for EmbeddingRegistry."""

import pytest

import contextpilot.search.rerank
from contextpilot.config import EmbeddingSettings
from contextpilot.embedding import EmbeddingRegistry, MockEmbeddingService
from contextpilot.search.rerank import RerankError, VoyageReranker


class TestEmbeddingRegistry:
    """Tests for lazy model selection."""

    def test_mock_embedder_cached(self) -> None:
        registry = EmbeddingRegistry(use_mock=True)

        embedder = registry.get_code_embedder()

        assert isinstance(embedder, MockEmbeddingService)
        assert registry.get_code_embedder() is embedder

    def test_mock_mode_disables_reranking(self) -> None:
        assert EmbeddingRegistry(use_mock=True).get_reranker() is None

    def test_voyage_requires_api_key(self) -> None:
        settings = EmbeddingSettings(reranker_backend="voyage")
        assert EmbeddingRegistry(settings).get_reranker() is None

    def test_voyage_with_api_key(self) -> None:
        settings = EmbeddingSettings(reranker_backend="voyage", voyage_api_key="key")
        registry = EmbeddingRegistry(settings)

        reranker = registry.get_reranker()

        assert isinstance(reranker, VoyageReranker)
        assert registry.get_reranker() is reranker

    @pytest.mark.parametrize("backend", ["none", "unknown"])
    def test_disabled_backends(self, backend: str) -> None:
        settings = EmbeddingSettings(reranker_backend=backend)
        assert EmbeddingRegistry(settings).get_reranker() is None

    def test_cross_encoder_load_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        class BrokenCrossEncoder:
            def __init__(self, **kwargs) -> None:
                raise RerankError("download failed")

        monkeypatch.setattr(
            contextpilot.search.rerank, "CrossEncoderReranker", BrokenCrossEncoder
        )

        assert EmbeddingRegistry(EmbeddingSettings()).get_reranker() is None
