"""Renewal commands: expiry status, manual renewal and admin overrides."""

from __future__ import annotations

from contextlib import ExitStack
from typing import Annotated, Optional

import typer
from rich.console import Console

from helium.client.errors import error_handler
from helium.client.panel import PanelClient
from helium.commands._common import (
    DbOpt,
    FormatOpt,
    KeyOpt,
    PanelOpt,
    Store,
    UrlOpt,
    get_manager,
    make_client,
    make_notifier,
    open_store,
)
from helium.notify.events import EventNotifier
from helium.output.formatter import output
from helium.output.tables import format_epoch_ms, styled_state, yes_no
from helium.renewal.service import RenewalService

app = typer.Typer(name="renewal", help="Server expiry and renewal.")
console = Console()

ServerIdArg = Annotated[str, typer.Argument(help="Panel server id")]


def _service(
    store: Store, panel: PanelClient | None = None, notifier: EventNotifier | None = None,
) -> RenewalService:
    return RenewalService(
        store.servers, store.accounts, panel, get_manager().config.renewal,
        notifier=notifier,
    )


@app.command()
@error_handler
def status(
    database_url: DbOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show every tracked server and where it is in its lifecycle."""
    with open_store(database_url) as store:
        entries = _service(store).status()

    if not entries:
        console.print("[yellow]No servers are tracked.[/]")
        return
    data = [
        {
            "server_id": record.server_id,
            "owner_id": record.owner_id,
            "expires_at": record.expires_at,
            "suspended": record.suspended,
            "auto_renew": record.auto_renew,
            "state": state.value,
        }
        for record, state in entries
    ]
    rows = [
        [
            record.server_id,
            record.owner_id,
            format_epoch_ms(record.expires_at),
            yes_no(record.suspended),
            yes_no(record.auto_renew),
            styled_state(state.value),
        ]
        for record, state in entries
    ]
    output(
        data,
        fmt,
        columns=["Server", "Owner", "Expires", "Suspended", "Auto-renew", "State"],
        rows=rows,
        title="Tracked Servers",
    )


@app.command()
@error_handler
def renew(
    server_id: ServerIdArg,
    user_id: Annotated[str, typer.Option("--user", "-u", help="Dashboard user id paying for the renewal")],
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
) -> None:
    """Renew a server for one period, charging its owner."""
    with open_store(database_url) as store, ExitStack() as stack:
        record = store.servers.get(server_id)
        client = None
        if record is not None and record.suspended:
            client = stack.enter_context(make_client(panel, url, api_key))
        notifier = stack.enter_context(make_notifier(store))
        record = _service(store, panel=client, notifier=notifier).renew(server_id, user_id)
        balance = store.accounts.balance(user_id)
    console.print(
        f"[green]Server {server_id} renewed until {format_epoch_ms(record.expires_at)}.[/] "
        f"Balance: {balance} coins."
    )


@app.command("auto-renew")
@error_handler
def auto_renew(
    server_id: ServerIdArg,
    enable: Annotated[Optional[bool], typer.Option("--on/--off", help="Set explicitly instead of toggling")] = None,
    database_url: DbOpt = None,
) -> None:
    """Toggle automatic renewal for a server."""
    with open_store(database_url) as store:
        service = _service(store)
        if enable is None:
            record = service.toggle_auto_renew(server_id)
        else:
            record = service.set_auto_renew(server_id, enable)
    state = "enabled" if record.auto_renew else "disabled"
    console.print(f"[green]Auto-renewal {state} for server {server_id}.[/]")


@app.command("set-expiry")
@error_handler
def set_expiry(
    server_id: ServerIdArg,
    days: Annotated[float, typer.Argument(help="Days from now until expiry")],
    database_url: DbOpt = None,
) -> None:
    """Admin: set a server to expire DAYS from now."""
    with open_store(database_url) as store:
        record = _service(store).set_expiry(server_id, days)
    console.print(
        f"[green]Server {server_id} now expires {format_epoch_ms(record.expires_at)}.[/]"
    )


@app.command("remove-expiry")
@error_handler
def remove_expiry(
    server_id: ServerIdArg,
    database_url: DbOpt = None,
) -> None:
    """Admin: stop a server from expiring."""
    with open_store(database_url) as store:
        _service(store).remove_expiry(server_id)
    console.print(f"[green]Expiry removed for server {server_id}.[/]")
