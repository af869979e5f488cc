"""Root Typer app: global options and command group registration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from helium import __version__
from helium.commands import (
    coins,
    config_cmd,
    panel,
    renewal,
    server,
    sweep,
    user,
    webhook,
)
from helium.logging_setup import setup_logging

app = typer.Typer(
    name="helium",
    help="Control plane for a Pterodactyl game-server panel.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    if value:
        print(f"helium {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Log progress (-v) or debug detail (-vv)."
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also write logs to this file."
    ),
) -> None:
    """Helium: servers, renewals, coins and Discord notifications."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    setup_logging(level, log_file)


app.add_typer(config_cmd.app, name="config")
app.add_typer(panel.app, name="panel")
app.add_typer(server.app, name="server")
app.add_typer(user.app, name="user")
app.add_typer(renewal.app, name="renewal")
app.add_typer(coins.app, name="coins")
app.add_typer(webhook.app, name="webhook")
app.add_typer(sweep.app, name="sweep")


def main() -> None:
    app()
