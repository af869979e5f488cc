"""User commands: panel users and their servers."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console

from helium.client.errors import error_handler
from helium.commands._common import (
    FormatOpt,
    KeyOpt,
    PanelOpt,
    UrlOpt,
    extract_items,
    make_client,
)
from helium.models.user import PanelUser
from helium.output.formatter import output

app = typer.Typer(name="user", help="Inspect panel users.")
console = Console()


@app.command("list")
@error_handler
def list_users(
    page: Annotated[int, typer.Option("--page", help="Page number")] = 1,
    per_page: Annotated[int, typer.Option("--per-page", help="Users per page")] = 50,
    email: Annotated[Optional[str], typer.Option("--email", help="Filter by email")] = None,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List panel users."""
    params: dict[str, object] = {"page": page, "per_page": per_page}
    if email:
        params["filter[email]"] = email
    with make_client(panel, url, api_key) as client:
        users = [PanelUser.model_validate(u) for u in extract_items(client.list_users(params))]

    if not users:
        console.print("[yellow]No users found.[/]")
        return
    output(
        users,
        fmt,
        columns=["ID", "Username", "Email", "Admin"],
        rows=[[u.id, u.username, u.email, "yes" if u.root_admin else ""] for u in users],
        title="Panel Users",
    )


@app.command()
@error_handler
def get(
    user_id: Annotated[int, typer.Argument(help="Panel user id")],
    fresh: Annotated[bool, typer.Option("--fresh", help="Bypass the read cache")] = False,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show a user and the servers they own."""
    with make_client(panel, url, api_key) as client:
        data = client.get_user(user_id, fresh=fresh)

    user = PanelUser.from_api(data)
    servers = extract_items(
        data.get("attributes", {}).get("relationships", {}).get("servers", {})
    )
    info = user.model_dump()
    info["servers"] = [f"{s.get('id')}: {s.get('name')}" for s in servers]
    output(info, fmt, kv=True, title=f"User {user.username}")
