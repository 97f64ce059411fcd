"""
branchpub CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from branchpub import __version__
from branchpub.cli import pack, publish
from branchpub.core.config.env import load_layered_env

app = typer.Typer(
    name="branchpub",
    help="Publish build artifacts to a git branch",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the step trace.

    Args:
        debug: If True, enable DEBUG level logging (echoes git commands)
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
) -> None:
    """Publish build artifacts to a git branch."""
    setup_logging(debug)
    load_layered_env()


app.command(name="publish")(publish.publish)
app.command(name="pack")(pack.pack_command)


@app.command()
def version() -> None:
    """Show branchpub version and exit."""
    console.print(f"branchpub version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
