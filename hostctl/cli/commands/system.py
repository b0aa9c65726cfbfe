"""
System Commands.

Commands for client information and configuration.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from hostctl.core.config import get_app_config, get_settings

app = typer.Typer(help="Client information commands")
console = Console()

# Errors raised while locating, reading or validating config files
CONFIG_ERRORS = (FileNotFoundError, RuntimeError, ValueError)


@app.command()
def info() -> None:
    """
    Display client information.

    Shows name, version, company and the API the client talks to.
    """
    try:
        application = get_app_config().application
    except CONFIG_ERRORS as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold]{application.name}[/bold]\n"
        f"Version: {application.version}\n"
        f"Description: {application.description}\n"
        f"Company: {application.company}\n"
        f"API: {application.api.base_url}",
        title="Client Info",
    ))


@app.command()
def config(
    section: Optional[str] = typer.Argument(None, help="Config section to show (application, logging)"),
) -> None:
    """
    Display configuration settings.

    Shows all configuration or a specific section.
    """
    try:
        app_config = get_app_config()
    except CONFIG_ERRORS as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        raise typer.Exit(1)

    sections = {
        "application": app_config.application.model_dump(),
        "logging": app_config.logging.model_dump(),
    }

    if section:
        if section not in sections:
            console.print(f"[red]Unknown section: {section}[/red]")
            console.print(f"Available sections: {', '.join(sections.keys())}")
            raise typer.Exit(1)

        _display_config_section(section, sections[section])
        return

    for name, data in sections.items():
        _display_config_section(name, data)
        console.print()


def _display_config_section(name: str, data: dict) -> None:
    """Display a configuration section as a tree."""
    tree = Tree(f"[bold cyan]{name}[/bold cyan]")

    def add_items(parent: Tree, items: dict) -> None:
        for key, value in items.items():
            if isinstance(value, dict):
                branch = parent.add(f"[cyan]{key}[/cyan]")
                add_items(branch, value)
            else:
                parent.add(f"[cyan]{key}[/cyan]: {value}")

    add_items(tree, data)
    console.print(tree)


@app.command()
def env() -> None:
    """
    Display connection settings (non-sensitive).

    The API token itself is never printed.
    """
    try:
        application = get_app_config().application
        settings = get_settings()
    except CONFIG_ERRORS as e:
        console.print("[yellow]Warning: Could not load settings[/yellow]")
        console.print(f"[dim]Error: {e}[/dim]")
        raise typer.Exit(1)

    table = Table(title="Connection Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("API URL", application.api.base_url)
    table.add_row("Timeout", f"{application.api.timeout:g}s")
    table.add_row("API Token", "set" if settings.api_token else "[yellow]not set[/yellow]")
    table.add_row("Poll Interval", f"{application.polling.interval:g}s")
    table.add_row("Poll Timeout", f"{application.polling.timeout:g}s" if application.polling.timeout else "none")

    console.print(table)
    if not settings.api_token:
        console.print("\n[dim]Set HOSTCTL_API_TOKEN in config/.env.[/dim]")


@app.command()
def version() -> None:
    """
    Display version information.
    """
    try:
        console.print(f"[bold]{get_app_config().application.version}[/bold]")
    except CONFIG_ERRORS:
        console.print("[yellow]unknown[/yellow]")
