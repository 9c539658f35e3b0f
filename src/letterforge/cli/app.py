"""Main Typer application: entry point for the ``letterforge`` CLI."""

from __future__ import annotations

import typer

from letterforge import __version__
from letterforge.cli.run import run_cmd
from letterforge.cli.show import show_cmd

app = typer.Typer(
    name="letterforge",
    help="Count letters in files with one supervised worker process per file.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Spawn one worker per file and write histogram artifacts.")(run_cmd)
app.command("show", help="Display histogram artifacts as a table.")(show_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"letterforge {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """LetterForge: supervised letter histograms."""
