# Copyright (c) Syntropy Systems
"""speedrank doctor command."""

import sqlite3
from typing import cast

import yaml
from pydantic import ValidationError
from rich.console import Console

from speedrank.config import CONFIG_FILE_NAME, find_speedrank_dir, get_db_path, load_config
from speedrank.db import SQLiteKeyValueStore, get_connection
from speedrank.errors import StorageError
from speedrank.store import parse_results

console = Console()


def doctor() -> None:
    """Check speedrank setup and diagnose issues.

    Verifies:
    - speedrank directory exists
    - config.yaml parses
    - SQLite database is healthy
    - stored snapshot is readable
    """
    issues: list[str] = []
    warnings: list[str] = []

    speedrank_dir = find_speedrank_dir()
    if speedrank_dir is None:
        console.print("[red]\u2717[/red] No .speedrank directory found")
        console.print("  Run [bold]speedrank init[/bold] to initialize a project")
        return

    console.print(f"[green]\u2713[/green] speedrank directory: {speedrank_dir}")

    # Check config
    config_path = speedrank_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        console.print("[yellow]\u26a0[/yellow] config.yaml not found, using defaults")
        warnings.append("Config file missing")
    try:
        config = load_config(speedrank_dir)
    except yaml.YAMLError as e:
        console.print(f"[red]\u2717[/red] Invalid config.yaml: {e}")
        issues.append("Invalid config")
        config = None
    else:
        console.print(
            f"[green]\u2713[/green] Config: probe path {config.probe_path}, "
            f"timeout {config.timeout_ms:.0f} ms, concurrency {config.concurrency}"
        )
        if not config.domains:
            console.print("[dim]\u2022[/dim] No default domains configured")

    # Check database
    db_path = get_db_path(speedrank_dir)
    if not db_path.exists():
        console.print(f"[red]\u2717[/red] Database not found: {db_path}")
        issues.append("Database missing")
    else:
        conn = None
        try:
            conn = get_connection(db_path)
            result = cast(
                "sqlite3.Row | None",
                conn.execute("PRAGMA journal_mode").fetchone(),
            )
            if result is not None and cast("str", result[0]).lower() == "wal":
                console.print("[green]\u2713[/green] SQLite: WAL mode enabled")
            else:
                journal_mode = (
                    cast("str", result[0]) if result is not None else "unknown"
                )
                console.print(
                    f"[yellow]\u26a0[/yellow] SQLite: journal_mode is {journal_mode}, expected WAL"
                )
                warnings.append("Not using WAL mode")
        except sqlite3.Error as e:
            console.print(f"[red]\u2717[/red] Database error: {e}")
            issues.append(f"Database error: {e}")
        finally:
            if conn is not None:
                conn.close()

    # Check stored snapshot
    if config is not None and db_path.exists() and not issues:
        store = SQLiteKeyValueStore(db_path)
        try:
            raw = store.read(config.storage_key)
            results = parse_results(raw)
            updated = store.updated_at(config.storage_key) or "-"
        except StorageError as e:
            console.print(f"[red]\u2717[/red] Snapshot unreadable: {e}")
            issues.append("Snapshot unreadable")
        except ValidationError:
            console.print("[yellow]\u26a0[/yellow] Stored snapshot is corrupt, it reads as empty")
            warnings.append("Corrupt snapshot")
        else:
            if results:
                console.print(
                    f"[green]\u2713[/green] Snapshot: {len(results)} domains, "
                    f"fastest {results[0].domain} (updated {updated})"
                )
            else:
                console.print("[dim]\u2022[/dim] No stored snapshot")

    # Summary
    console.print()
    if issues:
        console.print(f"[red]Found {len(issues)} issue(s)[/red]")
        for issue in issues:
            console.print(f"  - {issue}")
    elif warnings:
        console.print(f"[yellow]Found {len(warnings)} warning(s)[/yellow]")
        for warning in warnings:
            console.print(f"  - {warning}")
    else:
        console.print("[green]All checks passed[/green]")
