#!/usr/bin/env python3
"""
hostctl.

Command-line client for the hosting API: cloud accounts and their backups.
Commands are declared in hostctl/cli/commands and built into click
commands at startup; housekeeping commands live in the typer "system"
group.

Usage:
    python cli.py --help
    python cli.py cloud-account:list --filter state:enabled
    python cli.py cloud-account:show --id 42 --json
    python cli.py cloud-account:create wordpress --domain example.com
    python cli.py cloud-account:backup:create -c 42 --wait
    python cli.py cloud-account:backup:create -c 42 --download ./backups
    python cli.py cloud-account:backup:list -c 42
    python cli.py cloud-account:backup:download -c 42 -f backup.tgz -d .
    python cli.py system info

Options:
    --verbose, -v     Enable verbose output (INFO level logging)
    --debug, -d       Enable debug mode (DEBUG level logging)
    --help            Show help message
"""

import sys

import click
import structlog
import typer
from rich.console import Console

from hostctl.cli.application import EXIT_FAILURE, Application
from hostctl.cli.command import build_commands
from hostctl.cli.commands import DEFINITIONS, system_app
from hostctl.core.config import validate_project_root
from hostctl.core.exceptions import ApplicationError
from hostctl.core.logging import get_logger, setup_logging

app = typer.Typer(
    name="hostctl",
    help="Hosting API client - cloud accounts, backups, and more.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console(stderr=True)

app.add_typer(system_app, name="system")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (INFO level logging)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug mode (DEBUG level logging)",
    ),
) -> None:
    """
    Hosting API client.

    Manage cloud accounts and their backups. Every API command accepts
    --json for machine-readable output and -n to never prompt.
    """
    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    get_logger(__name__).debug("CLI invoked", log_level=log_level)


def build_cli(application: Application | None = None) -> click.Group:
    """
    Build the root command group with every enabled API command.

    Raises:
        ConfigurationError: If a command declaration is invalid
    """
    application = application or Application.from_config()
    group = typer.main.get_group(app)
    for command in build_commands(DEFINITIONS, application):
        group.add_command(command.to_click())
    return group


def run() -> None:
    """Console script entry point."""
    validate_project_root()

    application = Application.from_config()
    try:
        cli = build_cli(application)
    except ApplicationError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        sys.exit(EXIT_FAILURE)

    try:
        cli(prog_name="hostctl")
    finally:
        application.close()


if __name__ == "__main__":
    run()
