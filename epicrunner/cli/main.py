"""Typer CLI for epicrunner."""

from __future__ import annotations

from typing import Annotated

import typer

from epicrunner.cli._helpers import console
from epicrunner.cli.pipeline_cmd import run, show

app = typer.Typer(
    name="epicrunner",
    help="Run declarative pipelines of steps.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    if value:
        from epicrunner import __version__

        console.print(f"epicrunner {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--log-verbose", help="Enable debug logging"),
    ] = False,
) -> None:
    """epicrunner: run declarative pipelines of steps."""
    from epicrunner._log import setup_logging

    setup_logging(verbose=verbose)


app.command()(run)
app.command()(show)


def app_entry() -> None:
    """Entry point for the CLI."""
    app()
