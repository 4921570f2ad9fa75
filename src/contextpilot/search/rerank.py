"""Rerankers reordering search candidates by relevance to a query."""

import asyncio
from abc import ABC, abstractmethod
from functools import partial
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

VOYAGE_RERANK_URL = "https://api.voyageai.com/v1/rerank"
VOYAGE_DEFAULT_MODEL = "rerank-2"
VOYAGE_TIMEOUT_SECONDS = 5.0
VOYAGE_MAX_RETRIES = 2


class RerankError(Exception):
    """Raised when a reranking backend fails."""

    pass


class Reranker(ABC):
    """Reorders documents by relevance to a query.

    Implementations provide ``rank_indices``, which may raise. Callers use
    ``rerank``, which never raises: on any failure it returns the identity
    order so search results keep their similarity ranking.
    """

    @abstractmethod
    async def rank_indices(self, query: str, documents: list[str]) -> list[int]:
        """Return document indices, most relevant first.

        Raises:
            RerankError: If the backend cannot produce a ranking
        """
        ...

    async def rerank(self, query: str, documents: list[str]) -> list[int]:
        if not documents:
            return []
        try:
            order = await self.rank_indices(query, documents)
        except Exception as e:
            logger.warning(
                "rerank_failed",
                reranker=type(self).__name__,
                error=str(e),
                documents=len(documents),
            )
            return list(range(len(documents)))

        seen: set[int] = set()
        valid: list[int] = []
        for index in order:
            if 0 <= index < len(documents) and index not in seen:
                seen.add(index)
                valid.append(index)
        return valid


class CrossEncoderReranker(Reranker):
    """Local reranking with a sentence-transformers cross-encoder."""

    def __init__(
        self,
        model_name: str = "cross-encoder/ms-marco-MiniLM-L-6-v2",
        cache_dir: str | None = None,
    ) -> None:
        # Lazy import to avoid loading PyTorch until reranking is used
        from sentence_transformers import CrossEncoder  # type: ignore[import-untyped]

        try:
            self.model = CrossEncoder(model_name, cache_folder=cache_dir)
        except Exception as e:
            raise RerankError(f"Failed to load reranker {model_name}: {e}") from e

    async def rank_indices(self, query: str, documents: list[str]) -> list[int]:
        loop = asyncio.get_event_loop()
        scores: Any = await loop.run_in_executor(
            None,
            partial(
                self.model.predict,
                [(query, document) for document in documents],
                show_progress_bar=False,
            ),
        )
        return sorted(
            range(len(documents)), key=lambda i: float(scores[i]), reverse=True
        )


class VoyageReranker(Reranker):
    """Voyage AI rerank endpoint over HTTP."""

    def __init__(
        self,
        api_key: str,
        model: str = VOYAGE_DEFAULT_MODEL,
        timeout: float = VOYAGE_TIMEOUT_SECONDS,
        max_retries: int = VOYAGE_MAX_RETRIES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport

    async def rank_indices(self, query: str, documents: list[str]) -> list[int]:
        payload = {"query": query, "documents": documents, "model": self.model}
        headers = {"Authorization": f"Bearer {self.api_key}"}

        last_error: Exception | None = None
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as http_client:
            for attempt in range(self.max_retries + 1):
                try:
                    response = await http_client.post(
                        VOYAGE_RERANK_URL, json=payload, headers=headers
                    )
                    response.raise_for_status()
                    data = response.json()
                    return [int(item["index"]) for item in data["data"]]
                except httpx.HTTPStatusError as e:
                    last_error = e
                    # Client errors other than rate limiting will not succeed on retry.
                    status = e.response.status_code
                    if status < 500 and status != 429:
                        break
                except (httpx.TimeoutException, httpx.TransportError) as e:
                    last_error = e
                except (KeyError, TypeError, ValueError) as e:
                    raise RerankError(f"Malformed rerank response: {e}") from e
                logger.debug("voyage_rerank_retry", attempt=attempt + 1)

        raise RerankError(f"Voyage rerank failed: {last_error}") from last_error
