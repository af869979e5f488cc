"""Sweep commands: run the expiration sweep once or on a schedule."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console

from helium.client.errors import error_handler
from helium.commands._common import (
    DbOpt,
    FormatOpt,
    KeyOpt,
    PanelOpt,
    UrlOpt,
    get_manager,
    make_client,
    make_notifier,
    open_store,
)
from helium.config.constants import SWEEP_INTERVAL_SECONDS
from helium.output.formatter import output
from helium.renewal.sweeper import ExpirationSweeper

app = typer.Typer(name="sweep", help="Suspend, delete or auto-renew expired servers.")
console = Console()


@app.command()
@error_handler
def run(
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Run one sweep now."""
    settings = get_manager().config.renewal
    if not settings.enabled:
        console.print("[yellow]Renewal system is disabled; nothing to do.[/]")
        return
    with (
        make_client(panel, url, api_key) as client,
        open_store(database_url) as store,
        make_notifier(store) as notifier,
    ):
        sweeper = ExpirationSweeper(
            store.servers, store.accounts, client, settings, notifier=notifier,
        )
        summary = sweeper.sweep()
    output(summary, fmt, kv=True, title="Sweep")
    if summary.failed:
        raise typer.Exit(1)


@app.command()
@error_handler
def watch(
    interval: Annotated[float, typer.Option("--interval", help="Seconds between sweeps")] = SWEEP_INTERVAL_SECONDS,
    max_ticks: Annotated[Optional[int], typer.Option("--max-ticks", help="Stop after this many sweeps")] = None,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
) -> None:
    """Sweep on a fixed interval until interrupted."""
    settings = get_manager().config.renewal
    if not settings.enabled:
        console.print("[yellow]Renewal system is disabled; nothing to do.[/]")
        return
    console.print(f"Sweeping every {interval:g}s. Press Ctrl+C to stop.")
    with (
        make_client(panel, url, api_key) as client,
        open_store(database_url) as store,
        make_notifier(store) as notifier,
    ):
        sweeper = ExpirationSweeper(
            store.servers, store.accounts, client, settings, notifier=notifier,
        )
        try:
            ticks = sweeper.run_forever(interval=interval, max_ticks=max_ticks)
        except KeyboardInterrupt:
            console.print("\nStopped.")
            return
    console.print(f"[green]Completed {ticks} sweep(s).[/]")
