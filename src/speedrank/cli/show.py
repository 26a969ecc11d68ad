# Copyright (c) Syntropy Systems
"""speedrank show command."""

import typer
import yaml
from rich.console import Console
from rich.table import Table

from speedrank.manager import SpeedTestManager
from speedrank.models.result import ProbeResult
from speedrank.store import serialize_results

console = Console()


def format_latency(latency_ms: float, sentinel_ms: float) -> str:
    """Format a latency, marking sentinel entries as unreachable."""
    if latency_ms >= sentinel_ms:
        return "[red]unreachable[/red]"
    if latency_ms < 1000:
        return f"{latency_ms:.1f} ms"
    return f"{latency_ms / 1000:.2f} s"


def show_results_table(results: list[ProbeResult], sentinel_ms: float) -> None:
    """Display ranked results in a table."""
    if not results:
        console.print("[dim]No speed test results[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim")
    table.add_column("Domain")
    table.add_column("Latency", justify="right")

    for rank, result in enumerate(results, start=1):
        table.add_row(
            str(rank),
            result.domain,
            format_latency(result.latency_ms, sentinel_ms),
        )

    console.print(table)


def show(
    fastest: bool = typer.Option(
        False,
        "--fastest",
        help="Print only the fastest known domain",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the stored snapshot as JSON",
    ),
) -> None:
    """
    Show the last persisted speed test ranking.

    Reads the stored snapshot; no domains are probed.
    """
    try:
        manager = SpeedTestManager.for_project()
    except (RuntimeError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    with manager:
        if fastest:
            best = manager.fastest()
            if best is None:
                console.print("[dim]No speed test results[/dim]")
                raise typer.Exit(1)
            console.print(best.domain, highlight=False)
            return

        results = manager.get()
        sentinel_ms = manager.config.sentinel_ms

    if as_json:
        console.print_json(serialize_results(results))
        return

    show_results_table(results, sentinel_ms)
