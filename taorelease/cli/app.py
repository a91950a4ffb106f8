from __future__ import annotations

import typer

from taorelease import __version__
from taorelease.cli.commands.release_cmd import extension, package, repository


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Release TAO extensions, npm packages and git repositories hosted on GitHub.",
)


app.command()(extension)
app.command()(package)
app.command()(repository)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)


def main() -> None:
    app()
