# Copyright (c) Syntropy Systems
"""Main CLI entry point for speedrank."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from speedrank.cli.clear import clear
from speedrank.cli.doctor import doctor
from speedrank.cli.init_cmd import init
from speedrank.cli.run_cmd import run
from speedrank.cli.show import show

app = typer.Typer(
    name="speedrank",
    help=(
        "Rank endpoints by measured latency. Probe domains, keep the "
        "fastest first, read it back later."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show debug logging",
    ),
) -> None:
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


# Register commands
_ = app.command()(init)
_ = app.command()(run)
_ = app.command()(show)
_ = app.command()(clear)
_ = app.command()(doctor)


if __name__ == "__main__":
    app()
