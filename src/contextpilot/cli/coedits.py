"""contextpilot coedits command."""

import asyncio
import os

import click

from contextpilot import config
from contextpilot.git.coedit import CoEditAnalyzer


@click.command()
@click.argument(
    "project", type=click.Path(exists=True, file_okay=False, dir_okay=True)
)
@click.argument("files", nargs=-1, required=True)
@click.option(
    "--threshold",
    type=float,
    default=None,
    help="Minimum co-edit weight (defaults to the configured value).",
)
def coedits(project: str, files: tuple[str, ...], threshold: float | None) -> None:
    """List files historically edited together with FILES."""
    root = os.path.abspath(project)
    analyzer = CoEditAnalyzer(
        root,
        min_co_edit_threshold=(
            threshold
            if threshold is not None
            else config.settings.context.min_co_edit_threshold
        ),
    )
    targets = [os.path.join(root, f) if not os.path.isabs(f) else f for f in files]
    co_edited = asyncio.run(analyzer.find_co_edited_files(targets))

    if not co_edited:
        click.echo("No co-edited files found.")
        return
    for path in co_edited:
        click.echo(os.path.relpath(path, root))
