"""Config command group."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from dialogbridge.config.loader import convert_to_camel, get_config_path, load_config, save_config
from dialogbridge.config.schema import BridgeConfig


def register_config_commands(app: typer.Typer, console: Console) -> None:
    """Register the config command group."""
    config_app = typer.Typer(help="Inspect and initialise the bridge configuration")
    app.add_typer(config_app, name="config")

    @config_app.command("show")
    def config_show(
        path: Path = typer.Option(None, "--path", "-p", help="Config file (default ~/.dialogbridge/config.json)"),
        as_json: bool = typer.Option(False, "--json", help="Print camelCase JSON instead of a table"),
    ) -> None:
        """Print the resolved configuration (file, environment and defaults)."""
        try:
            config = load_config(path)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        data = convert_to_camel(config.model_dump())
        if as_json:
            console.print(json.dumps(data, indent=2, ensure_ascii=False))
            return
        table = Table(title=f"dialogbridge config ({path or get_config_path()})")
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        for key, value in _flatten(data):
            table.add_row(key, json.dumps(value, ensure_ascii=False))
        console.print(table)

    @config_app.command("init")
    def config_init(
        path: Path = typer.Option(None, "--path", "-p", help="Config file (default ~/.dialogbridge/config.json)"),
        force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
    ) -> None:
        """Write a config file with default values."""
        target = path or get_config_path()
        if target.exists() and not force:
            console.print(f"[yellow]Config already exists:[/yellow] {target} (use --force to overwrite)")
            raise typer.Exit(1)
        written = save_config(BridgeConfig(), target)
        console.print(f"[green]✓[/green] Wrote defaults to [cyan]{written}[/cyan]")


def _flatten(data: dict, prefix: str = "") -> list[tuple[str, object]]:
    rows: list[tuple[str, object]] = []
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            rows.extend(_flatten(value, f"{dotted}."))
        else:
            rows.append((dotted, value))
    return rows
