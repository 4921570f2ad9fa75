"""Persisted per-project embedding index for semantic code search."""

import asyncio
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeAlias
from functools import partial
from pathlib import Path

import numpy as np
import structlog

from contextpilot.config import IndexerSettings, settings
from contextpilot.embedding.base import EmbeddingService, cosine_similarity
from contextpilot.project.files import (
    is_text_file,
    list_project_files,
    relative_path,
)
from contextpilot.project.ignore import IgnoreRules
from contextpilot.search.rerank import Reranker
from contextpilot.storage.settings import SettingKey, SettingsStore

from .chunking import chunk_file
from .records import EmbeddingRecord, IndexFormatError, iter_records, save_records
from .utils import compute_content_hash

logger = structlog.get_logger(__name__)

# Chunks this short carry no searchable content.
MIN_RESULT_CONTENT_LENGTH = 5

# Called with (processed, total, file_path) after each file is embedded.
ProgressCallback: TypeAlias = Callable[[int, int, str], None]


class EmbeddingIndexError(Exception):
    """Raised when the index cannot be persisted."""

    pass


@dataclass
class CodeSearchResult:
    """A chunk matching a search query."""

    file_path: str
    content: str
    start_line: int
    end_line: int
    score: float


class EmbeddingIndex:
    """Chunk embeddings for one project, kept in memory and saved as JSON.

    Each file's records carry the hash of the content they were built from,
    so unchanged files are never re-embedded. Records whose files disappear
    are dropped on load.
    """

    def __init__(
        self,
        project_root: str | Path,
        index_path: str | Path,
        embedder: EmbeddingService,
        reranker: Reranker | None = None,
        indexer_settings: IndexerSettings | None = None,
        settings_store: SettingsStore | None = None,
        ignore: IgnoreRules | None = None,
    ) -> None:
        self.project_root = os.path.abspath(str(project_root))
        self.index_path = Path(index_path)
        self.embedder = embedder
        self.reranker = reranker
        self.settings = indexer_settings or settings.indexer
        self.settings_store = settings_store
        self._ignore = ignore
        self.records: list[EmbeddingRecord] = []

    @property
    def ignore(self) -> IgnoreRules:
        if self._ignore is None:
            self._ignore = IgnoreRules.from_directory(self.project_root)
        return self._ignore

    @property
    def max_files_to_embed(self) -> int:
        default = self.settings.max_files_to_embed
        if self.settings_store is None:
            return default
        return self.settings_store.get_int(SettingKey.MAX_FILES_TO_EMBED, default)

    @property
    def embedder_identity(self) -> str:
        return f"{self.embedder.model_name}:{self.embedder.dimension}"

    def content_hash(self, content: str) -> str:
        """Hash of file content, the index format and the embedding model.

        Changing either the format version or the model invalidates every
        stored hash, so the next ``index_project`` re-embeds all files.
        """
        return compute_content_hash(
            content, f"{self.settings.format_version}:{self.embedder_identity}"
        )

    # Records

    def find_records(self, file_path: str) -> list[EmbeddingRecord]:
        return [r for r in self.records if r.file_path == file_path]

    def delete_records(self, file_path: str) -> None:
        self.records = [r for r in self.records if r.file_path != file_path]

    def indexed_files(self) -> list[str]:
        return list(dict.fromkeys(r.file_path for r in self.records))

    def _belongs_to_project(self, file_path: str) -> bool:
        try:
            common = os.path.commonpath([self.project_root, file_path])
            return common == self.project_root
        except ValueError:
            return False

    def delete_records_for_missing_files(self) -> int:
        """Drop records outside the project root or whose file is gone."""
        existing: dict[str, bool] = {}
        kept: list[EmbeddingRecord] = []
        for record in self.records:
            path = record.file_path
            if path not in existing:
                belongs = self._belongs_to_project(path)
                existing[path] = belongs and os.path.isfile(path)
            if existing[path]:
                kept.append(record)

        removed = len(self.records) - len(kept)
        self.records = kept
        if removed:
            logger.info("index_records_pruned", removed=removed)
        return removed

    def delete_records_with_foreign_vectors(self) -> int:
        """Drop records whose vector size does not match the embedder."""
        dimension = self.embedder.dimension
        kept = [r for r in self.records if len(r.vector) == dimension]
        removed = len(self.records) - len(kept)
        self.records = kept
        if removed:
            logger.warning(
                "index_vectors_mismatched", removed=removed, dimension=dimension
            )
        return removed

    # Persistence

    async def load(self) -> int:
        """Replace the in-memory records with the persisted index.

        A missing or corrupt file yields an empty index, which the next
        ``index_project`` rebuilds. Records embedded by a model of another
        dimension, and records of files that no longer exist, are dropped.

        Returns:
            Number of records kept
        """
        loop = asyncio.get_event_loop()
        if self.index_path.exists():
            try:
                self.records = await loop.run_in_executor(
                    None, lambda: list(iter_records(self.index_path))
                )
            except (OSError, IndexFormatError) as e:
                logger.error(
                    "index_load_failed", path=str(self.index_path), error=str(e)
                )
                self.records = []
        else:
            self.records = []

        self.delete_records_with_foreign_vectors()
        await loop.run_in_executor(None, self.delete_records_for_missing_files)
        logger.info(
            "index_loaded", path=str(self.index_path), records=len(self.records)
        )
        return len(self.records)

    async def save(self) -> None:
        """Persist a snapshot of the current records.

        Raises:
            EmbeddingIndexError: If the index file cannot be written
        """
        snapshot = list(self.records)
        loop = asyncio.get_event_loop()
        try:
            count = await loop.run_in_executor(
                None, save_records, self.index_path, snapshot
            )
        except OSError as e:
            raise EmbeddingIndexError(
                f"Failed to save index {self.index_path}: {e}"
            ) from e
        logger.info("index_saved", path=str(self.index_path), records=count)

    def delete(self) -> None:
        """Remove the on-disk index and forget all records."""
        self.index_path.unlink(missing_ok=True)
        self.records = []
        logger.info("index_deleted", path=str(self.index_path))

    # Embedding

    def _read_embeddable(self, file_path: str) -> str | None:
        """File content if it is an existing text file within the size limit."""
        try:
            if not os.path.isfile(file_path):
                return None
            if os.path.getsize(file_path) > self.settings.max_file_size:
                return None
            if not is_text_file(file_path):
                return None
            with open(file_path, encoding="utf-8", errors="replace") as f:
                return f.read()
        except OSError as e:
            logger.warning("index_file_unreadable", path=file_path, error=str(e))
            return None

    async def needs_reembedding(self, file_path: str) -> bool:
        """Whether file_path has no records or records of older content.

        Args:
            file_path: Absolute path inside the project

        Returns:
            False for files that cannot be embedded (missing, binary, too
            large), True when the stored hash differs from ``content_hash``
        """
        loop = asyncio.get_event_loop()
        content = await loop.run_in_executor(None, self._read_embeddable, file_path)
        if content is None:
            return False

        records = self.find_records(file_path)
        if not records:
            return True
        return records[0].hash != self.content_hash(content)

    async def update_embedding(self, file_path: str) -> int:
        """Re-chunk and re-embed one file, replacing its records.

        Args:
            file_path: Absolute path inside the project

        Returns:
            Number of chunks stored for the file; 0 when it cannot be embedded

        Raises:
            EmbeddingModelError: If the embedder fails
        """
        loop = asyncio.get_event_loop()
        content = await loop.run_in_executor(None, self._read_embeddable, file_path)
        if content is None:
            return 0

        file_hash = self.content_hash(content)
        chunks = await loop.run_in_executor(
            None, partial(chunk_file, file_path, content, self.settings.chunk_size)
        )
        vectors = await self.embedder.embed_batch([c.text for c in chunks])

        # No awaits below: the swap is atomic with respect to other files.
        self.delete_records(file_path)
        self.records.extend(
            EmbeddingRecord(
                file_path=file_path,
                hash=file_hash,
                page_content=chunk.text,
                vector=vector,
                start_line=chunk.start_line,
                end_line=chunk.end_line,
            )
            for chunk, vector in zip(chunks, vectors, strict=True)
        )
        return len(chunks)

    async def update_embeddings_for_files(
        self,
        file_paths: Iterable[str],
        progress: ProgressCallback | None = None,
    ) -> int:
        """Re-embed the stale files among file_paths, then save once.

        Files are embedded concurrently up to the configured limit. A failing
        file is logged and skipped; the others still complete.

        Args:
            file_paths: Absolute paths; duplicates are embedded once
            progress: Called with (processed, total, file_path) per file

        Returns:
            Number of files successfully re-embedded

        Raises:
            EmbeddingIndexError: If the updated index cannot be saved
        """
        paths = list(dict.fromkeys(file_paths))
        stale_flags = await asyncio.gather(
            *(self.needs_reembedding(p) for p in paths)
        )
        stale = [p for p, needed in zip(paths, stale_flags, strict=True) if needed]

        total = len(stale)
        if total:
            logger.info("index_update_started", files=total)

        semaphore = asyncio.Semaphore(max(1, self.settings.embedding_concurrency))
        processed = 0

        async def embed_one(file_path: str) -> None:
            nonlocal processed
            async with semaphore:
                await self.update_embedding(file_path)
            processed += 1
            if progress is not None:
                progress(processed, total, file_path)

        results = await asyncio.gather(
            *(embed_one(p) for p in stale), return_exceptions=True
        )

        failed = 0
        for file_path, result in zip(stale, results, strict=True):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                failed += 1
                logger.warning(
                    "index_file_failed",
                    path=file_path,
                    error=str(result),
                    error_type=type(result).__name__,
                )

        await self.save()
        if total:
            logger.info("index_update_complete", files=total - failed, failed=failed)
        return total - failed

    async def index_project(
        self,
        max_files: int | None = None,
        progress: ProgressCallback | None = None,
    ) -> int:
        """Embed the project's newest files, honoring ignore rules.

        Args:
            max_files: Cap on files considered; defaults to the
                ``maxFilesToEmbed`` setting
            progress: Called with (processed, total, file_path) per file

        Returns:
            Number of files re-embedded; unchanged files are skipped

        Raises:
            EmbeddingIndexError: If the updated index cannot be saved
        """
        limit = max_files if max_files is not None else self.max_files_to_embed
        loop = asyncio.get_event_loop()
        files = await loop.run_in_executor(
            None,
            partial(
                list_project_files,
                self.project_root,
                self.ignore,
                max_file_size=self.settings.max_file_size,
                max_results=limit,
            ),
        )
        logger.info(
            "index_project_scan", project_root=self.project_root, files=len(files)
        )
        return await self.update_embeddings_for_files(files, progress=progress)

    # Search

    async def search(
        self,
        query: str,
        limit: int = 50,
        rerank: bool = True,
        filenames_only: bool = False,
    ) -> list[CodeSearchResult] | list[str]:
        """Semantic search over indexed chunks.

        The best ``candidate_pool`` chunks by cosine similarity are optionally
        reranked and then truncated to limit. A failing reranker leaves the
        similarity order.

        Args:
            query: Natural-language query
            limit: Maximum number of results
            rerank: Whether to apply the configured reranker
            filenames_only: Return unique project-relative paths instead of
                chunks

        Returns:
            Matching chunks, or file paths with filenames_only
        """
        if not self.records:
            return []

        query_vector = await self.embedder.embed(query)
        matrix = np.vstack([r.vector for r in self.records])
        similarities = cosine_similarity(query_vector, matrix)
        top = np.argsort(-similarities, kind="stable")[: self.settings.candidate_pool]
        candidates = [(self.records[i], float(similarities[i])) for i in top]

        reranker = self.reranker if rerank else None

        if filenames_only:
            filenames = list(
                dict.fromkeys(
                    relative_path(record.file_path, self.project_root)
                    for record, _ in candidates
                )
            )
            if reranker is not None:
                order = await reranker.rerank(query, filenames)
                filenames = [filenames[i] for i in order]
            return filenames[:limit]

        results = [
            CodeSearchResult(
                file_path=record.file_path,
                content=record.page_content,
                start_line=record.start_line,
                end_line=record.end_line,
                score=score,
            )
            for record, score in candidates
            if len(record.page_content) > MIN_RESULT_CONTENT_LENGTH
        ]
        if reranker is not None:
            order = await reranker.rerank(query, [r.content for r in results])
            results = [results[i] for i in order]
        return results[:limit]
