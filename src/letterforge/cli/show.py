"""``letterforge show``: print histogram artifacts as a table."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from letterforge._internal.errors import ArtifactError
from letterforge.histogram.artifact import read_artifact
from letterforge.histogram.models import LETTERS

console = Console()


def show_cmd(
    artifacts: list[Path] = typer.Argument(
        ...,
        help="Artifact files (file<pid>.hist) to display.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    nonzero: bool = typer.Option(
        False,
        "--nonzero",
        help="Hide letters that are zero in every artifact.",
    ),
) -> None:
    """Display one column of letter counts per artifact."""
    try:
        histograms = [read_artifact(path) for path in artifacts]
    except ArtifactError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Letter", style="bold")
    for path in artifacts:
        table.add_column(path.name, justify="right")

    for i, letter in enumerate(LETTERS):
        row = [h.counts[i] for h in histograms]
        if nonzero and not any(row):
            continue
        table.add_row(letter, *(str(c) for c in row))

    table.add_row("total", *(str(h.total) for h in histograms), style="bold")
    console.print(table)
