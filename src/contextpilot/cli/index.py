"""contextpilot index and search commands."""

import asyncio
import os

import click

from contextpilot import config
from contextpilot.embedding.registry import EmbeddingRegistry
from contextpilot.indexers.index import CodeSearchResult, EmbeddingIndex
from contextpilot.search.suggestions import RelevantFilesFinder
from contextpilot.storage.settings import YamlSettingsStore


def open_index(ctx: click.Context, project: str) -> EmbeddingIndex:
    """Build the embedding index for a project directory from CLI state."""
    settings = config.settings
    root = os.path.abspath(project)
    registry = EmbeddingRegistry(
        settings.embedding, use_mock=ctx.obj.get("mock_embeddings", False)
    )
    return EmbeddingIndex(
        project_root=root,
        index_path=settings.index_path(os.path.basename(root)),
        embedder=registry.get_code_embedder(),
        reranker=registry.get_reranker(),
        indexer_settings=settings.indexer,
        settings_store=YamlSettingsStore(settings.settings_file),
    )


@click.command()
@click.argument(
    "project", type=click.Path(exists=True, file_okay=False, dir_okay=True)
)
@click.option("--max-files", type=int, default=None, help="Limit files embedded.")
@click.option("--rebuild", is_flag=True, help="Discard the existing index first.")
@click.pass_context
def index(
    ctx: click.Context, project: str, max_files: int | None, rebuild: bool
) -> None:
    """Embed the project's files for semantic search."""
    embedding_index = open_index(ctx, project)

    def report(processed: int, total: int, file_path: str) -> None:
        click.echo(f"[{processed}/{total}] {file_path}")

    async def run() -> int:
        if rebuild:
            embedding_index.delete()
        else:
            await embedding_index.load()
        return await embedding_index.index_project(max_files=max_files, progress=report)

    updated = asyncio.run(run())
    total = len(embedding_index.indexed_files())
    click.echo(
        f"Indexed {updated} file(s); {total} file(s) in {embedding_index.index_path}"
    )


@click.command()
@click.argument(
    "project", type=click.Path(exists=True, file_okay=False, dir_okay=True)
)
@click.argument("query")
@click.option("--limit", type=int, default=10, show_default=True)
@click.option("--no-rerank", is_flag=True, help="Skip the reranking step.")
@click.option("--filenames-only", is_flag=True, help="Print matching files only.")
@click.pass_context
def search(
    ctx: click.Context,
    project: str,
    query: str,
    limit: int,
    no_rerank: bool,
    filenames_only: bool,
) -> None:
    """Search an indexed project."""
    embedding_index = open_index(ctx, project)

    async def run() -> list[CodeSearchResult] | list[str]:
        await embedding_index.load()
        return await embedding_index.search(
            query, limit=limit, rerank=not no_rerank, filenames_only=filenames_only
        )

    results = asyncio.run(run())
    if not results:
        click.echo("No results found.")
        return

    for result in results:
        if isinstance(result, str):
            click.echo(result)
            continue
        click.echo(
            f"{result.file_path}:{result.start_line}-{result.end_line} "
            f"(score {result.score:.3f})"
        )
        click.echo(result.content)
        click.echo("-" * 40)


@click.command()
@click.argument(
    "project", type=click.Path(exists=True, file_okay=False, dir_okay=True)
)
@click.argument("message")
@click.option("--count", type=int, default=6, show_default=True)
@click.pass_context
def suggest(ctx: click.Context, project: str, message: str, count: int) -> None:
    """Suggest files relevant to a draft message."""
    embedding_index = open_index(ctx, project)
    finder = RelevantFilesFinder(embedding_index)

    async def run() -> dict[str, str]:
        await embedding_index.load()
        return await finder.suggest(message, count=count)

    suggestions = asyncio.run(run())
    if not suggestions:
        click.echo("No suggestions.")
        return
    for name, path in suggestions.items():
        click.echo(f"{name:<30} {path}")
