"""Coin commands: balances and account linking."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console

from helium.client.errors import error_handler
from helium.commands._common import DbOpt, FormatOpt, make_notifier, open_store, print_report
from helium.notify import integrations
from helium.output.formatter import output

app = typer.Typer(name="coins", help="Account coin balances.")
console = Console()

UserArg = Annotated[str, typer.Argument(help="Dashboard user id")]


@app.command()
@error_handler
def balance(
    user_id: Annotated[Optional[str], typer.Argument(help="Dashboard user id (all accounts if omitted)")] = None,
    database_url: DbOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show one balance, or every account."""
    with open_store(database_url) as store:
        if user_id:
            accounts = [store.accounts.get(user_id)]
            if accounts[0] is None:
                console.print(f"[yellow]No account for {user_id}; balance is 0.[/]")
                return
        else:
            accounts = store.accounts.list_all()

    if not accounts:
        console.print("[yellow]No accounts yet.[/]")
        return
    data = [
        {"user_id": a.user_id, "username": a.username, "panel_user_id": a.panel_user_id, "coins": a.coins}
        for a in accounts
    ]
    output(
        data,
        fmt,
        columns=["User", "Username", "Panel user", "Coins"],
        rows=[list(d.values()) for d in data],
        title="Balances",
    )


@app.command()
@error_handler
def link(
    user_id: UserArg,
    panel_user: Annotated[int, typer.Option("--panel-user", help="Panel user id")],
    username: Annotated[Optional[str], typer.Option("--username", help="Display name")] = None,
    database_url: DbOpt = None,
) -> None:
    """Link a dashboard user to their panel account."""
    with open_store(database_url) as store:
        store.accounts.upsert(user_id, username=username, panel_user_id=panel_user)
    console.print(f"[green]{user_id} linked to panel user {panel_user}.[/]")


@app.command()
@error_handler
def add(
    user_id: UserArg,
    amount: Annotated[int, typer.Argument(help="Coins to add (negative to take)")],
    reason: Annotated[str, typer.Option("--reason", help="Shown in the spend notification")] = "admin adjustment",
    database_url: DbOpt = None,
) -> None:
    """Add coins to (or take coins from) an account."""
    with open_store(database_url) as store:
        account = store.accounts.credit(user_id, amount)
        with make_notifier(store) as notifier:
            if amount >= 0:
                report = integrations.on_coins_added(notifier, user_id, account.username, amount)
            else:
                report = integrations.on_coins_spent(
                    notifier, user_id, account.username, -amount, reason,
                )
    console.print(f"[green]{user_id} now has {account.coins} coins.[/]")
    print_report(console, report)


@app.command("set")
@error_handler
def set_balance(
    user_id: UserArg,
    amount: Annotated[int, typer.Argument(help="New balance")],
    database_url: DbOpt = None,
) -> None:
    """Set an account's balance."""
    with open_store(database_url) as store:
        account = store.accounts.set_coins(user_id, amount)
    console.print(f"[green]{user_id} now has {account.coins} coins.[/]")
