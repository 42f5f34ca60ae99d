"""CLI commands for dialogbridge.

The CLI is the single entry point: a version flag, the `config` group and the loopback `demo`.
"""

import typer
from rich.console import Console

from dialogbridge import __logo__, __version__
from dialogbridge.cli.command_groups import register_config_commands, register_demo_command

app = typer.Typer(
    name="dialogbridge",
    help=f"{__logo__} dialogbridge - asynchronous remote calls over a string channel",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} dialogbridge v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """dialogbridge - asynchronous remote calls over a string channel."""
    pass


register_config_commands(app=app, console=console)
register_demo_command(app=app, console=console)


if __name__ == "__main__":
    app()
