"""Webhook commands: manage Discord subscriptions and fire events."""

from __future__ import annotations

import json
from typing import Annotated, Optional

import httpx
import typer
from rich.console import Console
from rich.prompt import Confirm

from helium.client.errors import ValidationError, error_handler
from helium.commands._common import DbOpt, FormatOpt, make_notifier, open_store, print_report
from helium.models.webhook import WebhookCreate, WebhookUpdate
from helium.notify.events import EVENT_TYPES
from helium.notify.integrations import PANEL_EVENT_MAP, map_panel_event
from helium.notify.webhook import GREEN, send_notification
from helium.output.formatter import output
from helium.output.tables import yes_no
from helium.store.models import WebhookSubscription

app = typer.Typer(name="webhook", help="Discord webhook subscriptions.")
console = Console()

WebhookIdArg = Annotated[int, typer.Argument(help="Webhook id")]
EventsOpt = Annotated[
    Optional[list[str]],
    typer.Option("--event", "-e", help="Event type to receive, or '*' for all (repeatable)"),
]


def _as_dict(hook: WebhookSubscription) -> dict:
    return {
        "id": hook.id,
        "name": hook.name,
        "webhook_url": hook.webhook_url,
        "server_id": hook.server_id,
        "event_types": list(hook.event_types or []),
        "enabled": hook.enabled,
        "created_at": hook.created_at.isoformat() if hook.created_at else None,
        "updated_at": hook.updated_at.isoformat() if hook.updated_at else None,
    }


@app.command("list")
@error_handler
def list_webhooks(
    database_url: DbOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List webhook subscriptions, newest first."""
    with open_store(database_url) as store:
        hooks = [_as_dict(h) for h in store.webhooks.list_all()]

    if not hooks:
        console.print("[yellow]No webhooks configured.[/]")
        return
    rows = [
        [h["id"], h["name"], ", ".join(h["event_types"]), h["server_id"], yes_no(h["enabled"])]
        for h in hooks
    ]
    output(hooks, fmt, columns=["ID", "Name", "Events", "Server", "Enabled"], rows=rows, title="Webhooks")


@app.command()
@error_handler
def show(
    webhook_id: WebhookIdArg,
    database_url: DbOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show one webhook."""
    with open_store(database_url) as store:
        data = _as_dict(store.webhooks.require(webhook_id))
    output(data, fmt, kv=True, title=f"Webhook {webhook_id}")


@app.command()
@error_handler
def add(
    name: Annotated[str, typer.Argument(help="Display name")],
    webhook_url: Annotated[str, typer.Option("--url", "-u", help="Discord webhook URL")],
    events: EventsOpt = None,
    server_id: Annotated[Optional[str], typer.Option("--server", help="Only for this server id")] = None,
    disabled: Annotated[bool, typer.Option("--disabled", help="Create disabled")] = False,
    database_url: DbOpt = None,
) -> None:
    """Register a webhook."""
    data = WebhookCreate(
        name=name,
        webhook_url=webhook_url,
        event_types=events or [],
        server_id=server_id,
        enabled=not disabled,
    )
    with open_store(database_url) as store:
        hook = store.webhooks.create(data)
    console.print(f"[green]Webhook '{name}' added (id {hook.id}).[/]")


@app.command()
@error_handler
def update(
    webhook_id: WebhookIdArg,
    name: Annotated[Optional[str], typer.Option("--name", help="Display name")] = None,
    webhook_url: Annotated[Optional[str], typer.Option("--url", "-u", help="Discord webhook URL")] = None,
    events: EventsOpt = None,
    server_id: Annotated[Optional[str], typer.Option("--server", help="Only for this server id")] = None,
    enabled: Annotated[Optional[bool], typer.Option("--enable/--disable")] = None,
    database_url: DbOpt = None,
) -> None:
    """Change a webhook. Options not given are left alone."""
    data = WebhookUpdate(
        name=name,
        webhook_url=webhook_url,
        event_types=events or None,
        server_id=server_id,
        enabled=enabled,
    )
    with open_store(database_url) as store:
        store.webhooks.update(webhook_id, data)
    console.print(f"[green]Webhook {webhook_id} updated.[/]")


@app.command()
@error_handler
def remove(
    webhook_id: WebhookIdArg,
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation")] = False,
    database_url: DbOpt = None,
) -> None:
    """Delete a webhook."""
    if not force and not Confirm.ask(f"Remove webhook {webhook_id}?"):
        console.print("Cancelled.")
        return
    with open_store(database_url) as store:
        if not store.webhooks.delete(webhook_id):
            console.print(f"[red]Webhook {webhook_id} not found.[/]")
            raise typer.Exit(4)
    console.print(f"[green]Webhook {webhook_id} removed.[/]")


@app.command()
@error_handler
def test(
    webhook_id: WebhookIdArg,
    database_url: DbOpt = None,
) -> None:
    """Send a test message to one webhook."""
    with open_store(database_url) as store:
        hook = store.webhooks.require(webhook_id)
        url = hook.webhook_url
    with httpx.Client(timeout=10.0) as client:
        ok = send_notification(
            client, url, "🧪 Test Notification",
            "This is a test notification from Helium.", GREEN,
        )
    if not ok:
        console.print(f"[red]Test message to webhook {webhook_id} failed.[/]")
        raise typer.Exit(1)
    console.print(f"[green]Test message delivered to webhook {webhook_id}.[/]")


@app.command()
@error_handler
def trigger(
    event_type: Annotated[
        str,
        typer.Argument(help=f"Event type, e.g. {EVENT_TYPES[0]}, or a panel event such as server:created"),
    ],
    metadata: Annotated[Optional[str], typer.Option("--data", "-d", help="Event metadata as a JSON object")] = None,
    database_url: DbOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Fire an event at every matching webhook.

    Panel events such as server:created, with server and user objects in
    --data, are translated to Helium events first.
    """
    try:
        payload = json.loads(metadata) if metadata else {}
    except json.JSONDecodeError as exc:
        raise ValidationError(f"--data is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError("--data must be a JSON object")
    if ":" in event_type:
        mapped = map_panel_event({**payload, "event": event_type})
        if mapped is None:
            known = ", ".join(PANEL_EVENT_MAP)
            raise ValidationError(f"Unknown panel event {event_type}. Known: {known}")
        event_type, payload = mapped

    with open_store(database_url) as store, make_notifier(store) as notifier:
        report = notifier.trigger_event(event_type, payload)
    if fmt == "table":
        if not report.matched:
            console.print(f"[yellow]No webhooks subscribe to {event_type}.[/]")
        print_report(console, report)
    else:
        output(report, fmt)
    if not report.ok:
        raise typer.Exit(1)
