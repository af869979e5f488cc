"""Server commands: list, inspect, provision, resize, suspend and delete."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.prompt import Confirm

from helium.client.errors import ValidationError, error_handler
from helium.commands._common import (
    DbOpt,
    FormatOpt,
    KeyOpt,
    PanelOpt,
    UrlOpt,
    extract_items,
    extract_pagination,
    get_manager,
    make_client,
    make_notifier,
    open_store,
    print_report,
)
from helium.models.server import FeatureLimits, Server, ServerLimits, ServerRequest
from helium.notify import integrations
from helium.output.formatter import output
from helium.output.tables import format_epoch_ms
from helium.renewal.service import RenewalService

app = typer.Typer(name="server", help="Manage panel servers.")
console = Console()

ServerIdArg = Annotated[int, typer.Argument(help="Panel server id")]


def _parse_env(pairs: list[str] | None) -> dict[str, str]:
    env: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValidationError(f"Invalid --env '{pair}', expected KEY=VALUE")
        env[key] = value
    return env


@app.command("list")
@error_handler
def list_servers(
    page: Annotated[int, typer.Option("--page", help="Page number")] = 1,
    per_page: Annotated[int, typer.Option("--per-page", help="Servers per page")] = 50,
    all_pages: Annotated[bool, typer.Option("--all", help="Fetch every page")] = False,
    fresh: Annotated[bool, typer.Option("--fresh", help="Bypass the read cache")] = False,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List servers on the panel."""
    with make_client(panel, url, api_key) as client:
        if all_pages:
            servers = [s.get("attributes", s) for s in client.get_all_servers(per_page=per_page)]
            pagination = {}
        else:
            data = client.list_servers({"page": page, "per_page": per_page}, fresh=fresh)
            servers = extract_items(data)
            pagination = extract_pagination(data)

    if not servers:
        console.print("[yellow]No servers found.[/]")
        return
    rows = [
        [
            s.get("id"),
            s.get("name"),
            s.get("user"),
            s.get("node"),
            (s.get("limits") or {}).get("memory"),
            (s.get("limits") or {}).get("disk"),
            "yes" if s.get("suspended") else "",
        ]
        for s in servers
    ]
    title = "Servers"
    if pagination:
        title += f" (page {pagination.get('current_page', page)}/{pagination.get('total_pages', 1)})"
    output(
        servers,
        fmt,
        columns=["ID", "Name", "Owner", "Node", "RAM (MB)", "Disk (MB)", "Suspended"],
        rows=rows,
        title=title,
    )


@app.command()
@error_handler
def get(
    server_id: ServerIdArg,
    fresh: Annotated[bool, typer.Option("--fresh", help="Bypass the read cache")] = False,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show one server, with its expiry when tracked."""
    with make_client(panel, url, api_key) as client:
        server = Server.from_api(client.get_server(server_id, fresh=fresh))

    data = server.model_dump(exclude={"limits", "feature_limits"})
    data.update({
        "memory": server.limits.memory,
        "disk": server.limits.disk,
        "cpu": server.limits.cpu,
    })
    with open_store(database_url) as store:
        record = store.servers.get(server_id)
        if record is not None:
            data["expires_at"] = format_epoch_ms(record.expires_at)
            data["auto_renew"] = record.auto_renew
            data["owner_id"] = record.owner_id
    output(data, fmt, kv=True, title=f"Server {server_id}")


@app.command()
@error_handler
def create(
    name: Annotated[str, typer.Option("--name", "-n", help="Server name")],
    user: Annotated[int, typer.Option("--user", help="Panel user id of the owner")],
    egg: Annotated[int, typer.Option("--egg", help="Egg id")],
    docker_image: Annotated[str, typer.Option("--docker-image", help="Docker image")],
    startup: Annotated[str, typer.Option("--startup", help="Startup command")],
    location: Annotated[int, typer.Option("--location", help="Deploy location id")],
    memory: Annotated[int, typer.Option("--memory", help="RAM in MB")] = 1024,
    disk: Annotated[int, typer.Option("--disk", help="Disk in MB")] = 5120,
    cpu: Annotated[int, typer.Option("--cpu", help="CPU limit in percent")] = 100,
    swap: Annotated[int, typer.Option("--swap", help="Swap in MB")] = 0,
    databases: Annotated[int, typer.Option("--databases")] = 0,
    backups: Annotated[int, typer.Option("--backups")] = 0,
    env: Annotated[Optional[list[str]], typer.Option("--env", "-e", help="Environment KEY=VALUE (repeatable)")] = None,
    owner: Annotated[Optional[str], typer.Option("--owner", help="Dashboard user id to charge for renewals")] = None,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Provision a server and start its expiry clock."""
    request = ServerRequest(
        name=name,
        user=user,
        egg=egg,
        docker_image=docker_image,
        startup=startup,
        environment=_parse_env(env),
        limits=ServerLimits(memory=memory, swap=swap, disk=disk, cpu=cpu),
        feature_limits=FeatureLimits(databases=databases, backups=backups),
        location_id=location,
    )
    with make_client(panel, url, api_key) as client:
        created = client.create_server(request)
    attrs = created.get("attributes", created)
    server_id = attrs.get("id")
    console.print(f"[green]Server '{name}' created (id {server_id}).[/]")

    with open_store(database_url) as store:
        service = RenewalService(store.servers, store.accounts, None, get_manager().config.renewal)
        record = service.track_server(server_id, owner_id=owner)
        if record is not None:
            console.print(f"Expires {format_epoch_ms(record.expires_at)}.")
        with make_notifier(store) as notifier:
            print_report(console, integrations.on_server_created(notifier, attrs, user_id=owner))
    output(attrs, fmt, kv=True, title=f"Server {server_id}")


@app.command()
@error_handler
def build(
    server_id: ServerIdArg,
    memory: Annotated[Optional[int], typer.Option("--memory", help="RAM in MB")] = None,
    disk: Annotated[Optional[int], typer.Option("--disk", help="Disk in MB")] = None,
    cpu: Annotated[Optional[int], typer.Option("--cpu", help="CPU limit in percent")] = None,
    swap: Annotated[Optional[int], typer.Option("--swap", help="Swap in MB")] = None,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
) -> None:
    """Change a server's resource limits."""
    if all(v is None for v in (memory, disk, cpu, swap)):
        raise ValidationError("Pass at least one of --memory, --disk, --cpu, --swap")

    with make_client(panel, url, api_key) as client:
        attrs = client.get_server(server_id, fresh=True).get("attributes", {})
        limits = dict(attrs.get("limits") or {})
        for key, value in (("memory", memory), ("disk", disk), ("cpu", cpu), ("swap", swap)):
            if value is not None:
                limits[key] = value
        body = {
            "allocation": attrs.get("allocation"),
            **limits,
            "feature_limits": attrs.get("feature_limits") or {},
        }
        updated = client.update_server_build(server_id, body)
    attrs = (updated or {}).get("attributes", {**attrs, "limits": limits})
    console.print(f"[green]Server {server_id} limits updated.[/]")

    with open_store(database_url) as store, make_notifier(store) as notifier:
        print_report(console, integrations.on_server_modified(notifier, attrs))


@app.command()
@error_handler
def suspend(
    server_id: ServerIdArg,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
) -> None:
    """Suspend a server."""
    with make_client(panel, url, api_key) as client:
        client.suspend_server(server_id)
    console.print(f"[green]Server {server_id} suspended.[/]")

    with open_store(database_url) as store:
        record = store.servers.get(server_id)
        if record is not None:
            store.servers.mark_suspended(record)
        with make_notifier(store) as notifier:
            print_report(console, integrations.on_server_suspended(notifier, server_id))


@app.command()
@error_handler
def unsuspend(
    server_id: ServerIdArg,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
) -> None:
    """Unsuspend a server. Its expiry is left unchanged."""
    with make_client(panel, url, api_key) as client:
        client.unsuspend_server(server_id)
    console.print(f"[green]Server {server_id} unsuspended.[/]")

    with open_store(database_url) as store:
        record = store.servers.get(server_id)
        if record is not None:
            store.servers.mark_suspended(record, False)
        with make_notifier(store) as notifier:
            print_report(console, integrations.on_server_unsuspended(notifier, server_id))


@app.command()
@error_handler
def delete(
    server_id: ServerIdArg,
    force: Annotated[bool, typer.Option("--force", help="Force delete even if the node is offline")] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    database_url: DbOpt = None,
) -> None:
    """Delete a server and stop tracking it."""
    if not yes and not Confirm.ask(f"Delete server {server_id}?"):
        console.print("Cancelled.")
        return

    with make_client(panel, url, api_key) as client:
        client.delete_server(server_id, force=force)
    console.print(f"[green]Server {server_id} deleted.[/]")

    with open_store(database_url) as store:
        store.servers.remove(server_id)
        with make_notifier(store) as notifier:
            print_report(console, integrations.on_server_deleted(notifier, server_id))
