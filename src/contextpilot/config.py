"""contextpilot Configuration Module.

Provides centralized configuration for all contextpilot components.
All settings support environment variable overrides with CONTEXTPILOT_ prefix.

Usage:
    from contextpilot.config import settings

    settings.context.max_chat_history_tokens
    settings.indexer.chunk_size
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Bump to invalidate every persisted embedding index.
INDEX_FORMAT_VERSION = "minilm-l6-384-v1"

CONTEXTPILOT_HOME = Path.home() / ".contextpilot"


class ContextSettings(BaseModel):
    """Settings for conversation reduction and context files."""

    max_chat_history_tokens: int = Field(
        default=5000,
        description="Token budget for summarizable chat history",
    )
    max_task_context_files_tokens: int = Field(
        default=10000,
        description="Token budget for enabled file contents",
    )
    keep_last_n_messages: int = Field(
        default=25,
        description="Messages kept verbatim at the end of the history",
    )
    min_messages_between_summarizations: int = Field(
        default=25,
        description="Minimum id gap before summarizing again",
    )
    min_kept_files: int = Field(
        default=5,
        description="Most recent files always kept when trimming file context",
    )
    messages_between_file_reductions: int = Field(
        default=24,
        description="Minimum id gap between two file context trims",
    )
    co_edit_lookup_max_files: int = Field(
        default=10,
        description="Co-edit lookup only runs while fewer files are tracked",
    )
    co_edit_seed_count: int = Field(
        default=3,
        description="Maximum co-edited files seeded as disabled entries",
    )
    min_co_edit_threshold: float = Field(
        default=2.0,
        description="Minimum accumulated co-edit weight",
    )


class IndexerSettings(BaseModel):
    """Settings for the embedding index."""

    max_files_to_embed: int = Field(
        default=10000,
        description="Maximum number of project files indexed",
    )
    max_file_size: int = Field(
        default=100_000,
        description="Files larger than this (bytes) are not embedded",
    )
    chunk_size: int = Field(
        default=1000,
        description="Target chunk size in characters",
    )
    candidate_pool: int = Field(
        default=50,
        description="Similarity candidates retrieved before rerank/truncation",
    )
    embedding_concurrency: int = Field(
        default=8,
        description="Files embedded concurrently during bulk re-indexing",
    )
    format_version: str = Field(
        default=INDEX_FORMAT_VERSION,
        description="Appended to content hashes; changing it forces re-embedding",
    )


class EmbeddingSettings(BaseModel):
    """Settings for embedding and reranking models."""

    code_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Model for code chunk embeddings",
    )
    reranker_backend: str = Field(
        default="cross-encoder",
        description="Reranker implementation (cross-encoder, voyage, none)",
    )
    reranker_model: str = Field(
        default="cross-encoder/ms-marco-MiniLM-L-6-v2",
        description="Cross-encoder model used for reranking",
    )
    voyage_api_key: str | None = Field(
        default=None,
        description="API key for the Voyage rerank endpoint",
    )
    cache_dir: str | None = Field(
        default=None,
        description="Optional model cache directory",
    )


class ContextPilotSettings(BaseSettings):
    """contextpilot configuration.

    All settings can be overridden via environment variables with the
    CONTEXTPILOT_ prefix, with "__" between nested fields. For example,
    CONTEXTPILOT_CONTEXT__MAX_CHAT_HISTORY_TOKENS=8000.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTEXTPILOT_",
        env_nested_delimiter="__",
    )

    home: Path = Field(
        default=CONTEXTPILOT_HOME,
        description="Base directory for contextpilot data",
    )
    log_level: str = Field(
        default="info",
        description="Logging level (debug, info, warning, error)",
    )
    log_format: str = Field(
        default="console",
        description="Log renderer (json, console)",
    )

    context: ContextSettings = Field(default_factory=ContextSettings)
    indexer: IndexerSettings = Field(default_factory=IndexerSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)

    @property
    def projects_dir(self) -> Path:
        """Directory holding per-project data."""
        return self.home / "projects"

    @property
    def settings_file(self) -> Path:
        """YAML file backing the key-value settings store."""
        return self.home / "settings.yaml"

    def index_path(self, project_name: str) -> Path:
        """Location of the persisted embedding index for a project."""
        return self.projects_dir / project_name / "vector_embeddings.json"


# Module-level defaults; components take explicit settings where they need them.
settings = ContextPilotSettings()
