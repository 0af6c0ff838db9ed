"""``localdoc config``: view and change analysis settings."""

from __future__ import annotations

from dataclasses import asdict

import typer
from rich.console import Console
from rich.table import Table

from . import config
from .config_manager import SETTING_NAMES, load_settings, update_setting

console = Console()

config_app = typer.Typer(
    help="⚙️  Configuration — analysis thresholds and display limits.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@config_app.command("show")
def show_config():
    """Show the current analysis settings."""
    settings = load_settings(config.CONFIG_FILE)

    table = Table(title="Analysis Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in asdict(settings).items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        table.add_row(key, str(value))

    console.print(table)
    console.print(f"[dim]Config file: {config.CONFIG_FILE}[/dim]")


@config_app.command("set")
def set_config(
    key: str = typer.Argument(..., help=f"Setting name: {', '.join(SETTING_NAMES)}."),
    value: str = typer.Argument(..., help="New value (intensity_buckets takes e.g. '5,10,20')."),
):
    """Change one analysis setting and save it to config.toml."""
    try:
        update_setting(config.CONFIG_FILE, key, value)
    except KeyError:
        console.print(f"[red]✗[/red] Unknown setting '{key}'. Choose from: {', '.join(SETTING_NAMES)}")
        raise typer.Exit(1)
    except (TypeError, ValueError) as exc:
        console.print(f"[red]✗[/red] Invalid value for '{key}': {exc}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {key} = {value}")
