# Copyright (c) Syntropy Systems
"""speedrank clear command."""

import typer
import yaml
from rich.console import Console

from speedrank.manager import SpeedTestManager

console = Console()


def clear() -> None:
    """Erase the stored speed test ranking."""
    try:
        manager = SpeedTestManager.for_project()
    except (RuntimeError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    with manager:
        manager.clear_results()

    console.print("[green]Cleared speed test results[/green]")
