# Copyright (c) Syntropy Systems
"""speedrank run command."""

import dataclasses
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console

from speedrank.cli.show import show_results_table
from speedrank.config import get_db_path, load_config, require_speedrank_dir
from speedrank.db import SQLiteKeyValueStore
from speedrank.manager import SpeedTestManager

console = Console()


def read_domain_file(path: Path) -> list[str]:
    """Read domains from a file, one per line. Blank lines and # comments are skipped."""
    domains: list[str] = []
    for line in path.read_text().splitlines():
        entry = line.split("#", 1)[0].strip()
        if entry:
            domains.append(entry)
    return domains


def run(
    domains: Optional[list[str]] = typer.Argument(
        None,
        help="Domains to probe (default: 'domains' from config.yaml)",
    ),
    file: Optional[Path] = typer.Option(
        None,
        "--file", "-f",
        exists=True,
        dir_okay=False,
        help="Read domains from a file, one per line",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency", "-c",
        min=1,
        help="Maximum probes in flight at once",
    ),
    timeout_ms: Optional[float] = typer.Option(
        None,
        "--timeout-ms",
        min=1,
        help="Time budget per probe in milliseconds",
    ),
) -> None:
    """
    Probe domains, rank them by latency and store the ranking.

    Domains that time out or fail are listed last as unreachable.

    Examples:

        speedrank run cdn1.example.com cdn2.example.com

        speedrank run --file mirrors.txt --concurrency 8
    """
    try:
        speedrank_dir = require_speedrank_dir()
        config = load_config(speedrank_dir)
    except (RuntimeError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    overrides: dict[str, object] = {}
    if concurrency is not None:
        overrides["concurrency"] = concurrency
    if timeout_ms is not None:
        overrides["timeout_ms"] = timeout_ms
    if overrides:
        config = dataclasses.replace(config, **overrides)

    targets = list(domains or [])
    if file is not None:
        targets.extend(read_domain_file(file))
    if not targets:
        targets = list(config.domains)
    if not targets:
        console.print("[red]Error:[/red] No domains provided")
        console.print("  Pass domains as arguments, use --file, or set 'domains' in config.yaml")
        raise typer.Exit(1)

    backend = SQLiteKeyValueStore(get_db_path(speedrank_dir))
    with SpeedTestManager(backend, config=config) as manager:
        with console.status(f"Probing {len(targets)} domain(s)..."):
            results = manager.run_speed_test(targets)

    show_results_table(results, config.sentinel_ms)

    reachable = sum(1 for r in results if r.latency_ms < config.sentinel_ms)
    console.print(f"[dim]{reachable}/{len(results)} reachable[/dim]")
