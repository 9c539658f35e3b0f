"""``letterforge run``: histogram files with one worker process each."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from letterforge._internal.config import load_config
from letterforge._internal.errors import LetterForgeError
from letterforge._internal.logging import setup_logging
from letterforge.engine.supervisor import Supervisor

if TYPE_CHECKING:
    from letterforge.engine.registry import WorkerOutcome
    from letterforge.engine.supervisor import SupervisorResult

console = Console(stderr=True)

_STATUS_STYLES = {
    "completed": "green",
    "no_payload": "cyan",
    "input_error": "yellow",
    "failed": "red",
    "signaled": "red",
}


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_outcome(outcome: WorkerOutcome) -> None:
    """Print one line as a worker is reaped (called on the reaper thread)."""
    style = _STATUS_STYLES.get(outcome.status, "white")
    where = f" -> {escape(str(outcome.artifact))}" if outcome.artifact is not None else ""
    console.print(
        f"[{style}]{outcome.status:<11}[/{style}] worker {outcome.index} "
        f"(pid {outcome.pid}) {escape(outcome.argument)}{where}"
    )


def _print_summary(result: SupervisorResult) -> None:
    """Print a final per-worker table.

    Args:
        result: Completed supervisor result.
    """
    table = Table(
        title="All Workers Reaped",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("#", justify="right")
    table.add_column("Input")
    table.add_column("PID", justify="right")
    table.add_column("Exit", justify="right")
    table.add_column("Status")
    table.add_column("Artifact")

    for outcome in result.outcomes:
        style = _STATUS_STYLES.get(outcome.status, "white")
        table.add_row(
            str(outcome.index),
            escape(outcome.argument),
            str(outcome.pid),
            str(outcome.exit_code),
            f"[{style}]{outcome.status}[/{style}]",
            str(outcome.artifact) if outcome.artifact is not None else "-",
        )

    console.print(table)
    console.print(
        f"Reaped {result.counters.num_reaped}/{result.counters.num_workers} workers "
        f"in {result.duration_seconds:.1f}s, wrote {len(result.artifacts)} artifact(s)."
    )


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def run_cmd(
    inputs: list[str] | None = typer.Argument(
        None,
        help="Files to histogram, one worker each. The marker value spawns an idle worker.",
        show_default=False,
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory for file<pid>.hist artifacts (default: LETTERFORGE_OUTPUT_DIR or .).",
    ),
    marker: str | None = typer.Option(
        None,
        "--marker",
        help="Argument value that spawns a worker waiting for an interrupt (default: SIG).",
    ),
    max_workers: int | None = typer.Option(
        None,
        "--max-workers",
        help="Maximum number of inputs accepted (default: 100).",
        min=1,
    ),
    base_delay: float | None = typer.Option(
        None,
        "--base-delay",
        help="Seconds each file worker sleeps after sending its histogram.",
        min=0.0,
    ),
    delay_step: float | None = typer.Option(
        None,
        "--delay-step",
        help="Extra sleep per worker index, staggering completions.",
        min=0.0,
    ),
    marker_timeout: float | None = typer.Option(
        None,
        "--marker-timeout",
        help="Seconds a marker worker waits for its interrupt.",
        min=0.0,
    ),
    poll_interval: float | None = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between supervisor wait-loop checks.",
        min=0.01,
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit non-zero if any worker failed to open its input or was killed.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """Spawn one worker per input and write a histogram artifact for each file."""
    log_level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=log_level)

    overrides: dict[str, Any] = {
        "output_dir": output,
        "marker": marker,
        "max_workers": max_workers,
        "base_delay": base_delay,
        "delay_step": delay_step,
        "marker_timeout": marker_timeout,
        "poll_interval": poll_interval,
    }
    inputs = list(inputs or [])

    try:
        config = dataclasses.replace(
            load_config(), **{k: v for k, v in overrides.items() if v is not None}
        )
        supervisor = Supervisor(
            inputs, config, on_outcome=_print_outcome, log_level=log_level
        )
    except LetterForgeError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        Panel(
            f"[bold]Inputs:[/bold]  {len(inputs)}\n"
            f"[bold]Output:[/bold]  {config.output_dir}\n"
            f"[bold]Delays:[/bold]  {config.base_delay}s + {config.delay_step}s x index",
            title="LetterForge",
            border_style="cyan",
        )
    )

    try:
        result = supervisor.run()
    except LetterForgeError as exc:
        console.print(f"[red]Supervisor failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted; remaining workers terminated.[/yellow]")
        raise typer.Exit(code=130) from None

    _print_summary(result)

    if strict and result.failures:
        console.print(
            f"[red]FAIL:[/red] {len(result.failures)} worker(s) did not complete normally"
        )
        raise typer.Exit(code=1)

    console.print("[green]All workers finished.[/green]")
