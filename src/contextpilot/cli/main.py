"""contextpilot CLI main entry point."""

import click

from contextpilot import __version__
from contextpilot import config
from contextpilot.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="contextpilot")
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.option(
    "--log-format",
    type=click.Choice(["json", "console"]),
    default=None,
    help="Override the configured log renderer.",
)
@click.option(
    "--mock-embeddings",
    is_flag=True,
    help="Use the deterministic mock embedder instead of loading a model.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: str | None,
    log_format: str | None,
    mock_embeddings: bool,
) -> None:
    """contextpilot - conversation context management for coding agents.

    Indexes projects for semantic code search and analyzes git history
    for files that change together.
    """
    context = {"command": ctx.invoked_subcommand} if ctx.invoked_subcommand else {}
    configure_logging(log_level, log_format, settings=config.settings, **context)
    ctx.ensure_object(dict)
    ctx.obj["mock_embeddings"] = mock_embeddings


# Import and register subcommands
from contextpilot.cli.coedits import coedits  # noqa: E402
from contextpilot.cli.index import index, search, suggest  # noqa: E402
from contextpilot.cli.structure import structure  # noqa: E402

cli.add_command(index)
cli.add_command(search)
cli.add_command(suggest)
cli.add_command(coedits)
cli.add_command(structure)
