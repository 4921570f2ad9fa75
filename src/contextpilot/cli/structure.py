"""contextpilot structure command."""

import asyncio

import click

from contextpilot.project.workspace import LocalWorkspace


@click.command()
@click.argument(
    "project", type=click.Path(exists=True, file_okay=False, dir_okay=True)
)
@click.option("--depth", type=int, default=1, show_default=True)
def structure(project: str, depth: int) -> None:
    """Print the folder structure shown to the model."""
    workspace = LocalWorkspace(project)
    click.echo(asyncio.run(workspace.folder_structure(max_depth=depth)))
