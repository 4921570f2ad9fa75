"""Lazy registry for the code embedder and the reranker.

Embedding and reranking implementations are imported only when first
requested so that importing contextpilot does not load PyTorch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from contextpilot.config import EmbeddingSettings, settings

from .base import EmbeddingService

if TYPE_CHECKING:
    from contextpilot.search.rerank import Reranker

logger = structlog.get_logger(__name__)


class EmbeddingRegistry:
    """Provides lazy-loaded models for the embedding index.

    Models are loaded on first use and cached for the registry's lifetime.
    Construct one per application and inject it; there is no global instance.
    """

    def __init__(
        self,
        embedding_settings: EmbeddingSettings | None = None,
        use_mock: bool = False,
    ) -> None:
        self.settings = embedding_settings or settings.embedding
        self.use_mock = use_mock
        self._code_embedder: EmbeddingService | None = None
        self._reranker: Reranker | None = None
        self._reranker_resolved = False

    def get_code_embedder(self) -> EmbeddingService:
        if self._code_embedder is None:
            if self.use_mock:
                from .mock import MockEmbeddingService

                self._code_embedder = MockEmbeddingService()
            else:
                from .minilm import MiniLMEmbedding

                self._code_embedder = MiniLMEmbedding(
                    model_name=self.settings.code_model,
                    cache_dir=self.settings.cache_dir,
                )
            logger.info(
                "code_embedder_loaded",
                model="mock" if self.use_mock else self.settings.code_model,
                dimension=self._code_embedder.dimension,
            )
        return self._code_embedder

    def get_reranker(self) -> Reranker | None:
        """Return the configured reranker, or None when reranking is disabled."""
        if self._reranker_resolved:
            return self._reranker
        self._reranker_resolved = True

        backend = "none" if self.use_mock else self.settings.reranker_backend
        match backend:
            case "cross-encoder":
                from contextpilot.search.rerank import (
                    CrossEncoderReranker,
                    RerankError,
                )

                try:
                    self._reranker = CrossEncoderReranker(
                        model_name=self.settings.reranker_model,
                        cache_dir=self.settings.cache_dir,
                    )
                except RerankError as e:
                    logger.warning("reranker_load_failed", error=str(e))
                    return None
            case "voyage":
                from contextpilot.search.rerank import VoyageReranker

                if not self.settings.voyage_api_key:
                    logger.warning("reranker_disabled", reason="missing_voyage_api_key")
                    return None
                self._reranker = VoyageReranker(api_key=self.settings.voyage_api_key)
            case "none":
                return None
            case _:
                logger.warning("reranker_unknown_backend", backend=backend)
                return None

        logger.info("reranker_loaded", backend=backend)
        return self._reranker
