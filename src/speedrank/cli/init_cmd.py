# Copyright (c) Syntropy Systems
"""speedrank init command."""

from pathlib import Path

import typer
import yaml
from rich.console import Console

from speedrank.config import (
    CONFIG_FILE_NAME,
    DB_FILE_NAME,
    PROJECT_DIR_NAME,
    SpeedTestConfig,
)
from speedrank.db import init_db

console = Console()


def init(
    path: Path = typer.Argument(
        Path(),
        help="Directory to initialize (default: current directory)",
    ),
) -> None:
    """Initialize a new speedrank project.

    Creates a .speedrank directory with configuration and database.
    """
    target = path.resolve()
    speedrank_dir = target / PROJECT_DIR_NAME

    if speedrank_dir.exists():
        console.print(f"[yellow]Already initialized:[/yellow] {speedrank_dir}")
        return

    speedrank_dir.mkdir(parents=True)

    config_path = speedrank_dir / CONFIG_FILE_NAME
    with config_path.open("w") as f:
        yaml.dump(SpeedTestConfig().to_dict(), f, default_flow_style=False)

    db_path = speedrank_dir / DB_FILE_NAME
    init_db(db_path)

    console.print(f"[green]Initialized speedrank project:[/green] {speedrank_dir}")
    console.print(f"  [dim]config:[/dim] {config_path}")
    console.print(f"  [dim]database:[/dim] {db_path}")
