"""Loopback demo: two bridges in one process exercising call, get and invoke."""

from __future__ import annotations

import asyncio
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from dialogbridge.bridge.factory import create_loopback_pair
from dialogbridge.config.schema import BridgeConfig
from dialogbridge.promise.timers import timeout
from dialogbridge.utils.exceptions import BridgeError
from dialogbridge.utils.logging_utils import configure_logging


async def run_demo(transport: str, codec: str, wait_seconds: float = 5.0) -> list[tuple[str, str, str]]:
    """Run the demo requests from side `a` against side `b`. Returns (request, outcome, detail) rows."""
    dialog, host, link = create_loopback_pair(
        BridgeConfig(transport=transport, codec=codec),
        BridgeConfig(codec=codec),
    )
    greetings: list[str] = []
    host.on("greet", lambda _recipient, name: greetings.append(name))
    host.on("add", lambda _context, x, y: x + y)
    host.on("divide", lambda _context, x, y: x / y)
    host.expose("math.power", lambda base, exponent: base**exponent)

    rows: list[tuple[str, str, str]] = []

    async def attempt(label: str, promise: Any) -> None:
        try:
            value = await timeout(promise, wait_seconds)
        except BridgeError as e:
            rows.append((label, "rejected", str(e)))
        except TimeoutError:
            rows.append((label, "timed out", f"no answer within {wait_seconds}s"))
        else:
            rows.append((label, "resolved", repr(value)))

    dialog.call("greet", "world")
    await attempt("get('add', 4, 2)", dialog.get("add", 4, 2))
    await attempt("get('divide', 1, 0)", dialog.get("divide", 1, 0))
    await attempt("get('missing')", dialog.get("missing"))
    await attempt("invoke('math.power', 2, 10)", dialog.invoke("math.power", 2, 10))
    rows.insert(0, ("call('greet', 'world')", "delivered" if greetings else "pending", repr(greetings)))
    rows.append(("messages delivered", str(link.delivered), f"dropped={link.dropped}"))
    return rows


def register_demo_command(app: typer.Typer, console: Console) -> None:
    """Register the demo command."""

    @app.command("demo")
    def demo(
        transport: str = typer.Option("immediate", "--transport", "-t", help="immediate or queued"),
        codec: str = typer.Option("json", "--codec", "-c", help="json or fallback"),
        log_level: str = typer.Option("WARNING", "--log-level", help="Console log level"),
    ) -> None:
        """Wire two bridges over an in-memory loopback and print the outcomes."""
        if transport not in ("immediate", "queued"):
            console.print(f"[red]Unknown transport:[/red] {transport}")
            raise typer.Exit(1)
        if codec not in ("json", "fallback"):
            console.print(f"[red]Unknown codec:[/red] {codec}")
            raise typer.Exit(1)
        configure_logging(log_level.upper())
        rows = asyncio.run(run_demo(transport, codec))
        table = Table(title=f"dialogbridge demo ({transport} transport, {codec} codec)")
        table.add_column("Request", style="cyan")
        table.add_column("Outcome")
        table.add_column("Detail")
        for request, outcome, detail in rows:
            style = "green" if outcome in ("resolved", "delivered") else "yellow"
            table.add_row(request, f"[{style}]{outcome}[/{style}]", detail)
        console.print(table)
