"""Shared helpers for CLI commands: options, client and store factories."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Annotated, Any

import typer
from sqlalchemy.orm import Session

from helium.client.panel import PanelClient
from helium.config.manager import ConfigManager
from helium.notify.events import EventNotifier
from helium.store.database import create_session_factory
from helium.store.repositories import (
    AccountRepository,
    TrackedServerRepository,
    WebhookRepository,
)

# Shared Typer option type aliases
PanelOpt = Annotated[
    str | None,
    typer.Option("--panel", "-p", help="Panel profile"),
]
UrlOpt = Annotated[
    str | None,
    typer.Option("--url", help="Panel URL override"),
]
KeyOpt = Annotated[
    str | None,
    typer.Option("--api-key", help="Application API key override"),
]
FormatOpt = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format: table, json, yaml, csv"),
]
DbOpt = Annotated[
    str | None,
    typer.Option("--database-url", help="SQLAlchemy database URL override"),
]


def get_manager() -> ConfigManager:
    return ConfigManager()


def make_client(panel: str | None, url: str | None, api_key: str | None) -> PanelClient:
    """Create a PanelClient from CLI options, env vars, or config profile."""
    profile = get_manager().resolve_panel(profile_name=panel, url=url, api_key=api_key)
    return PanelClient(profile)


@dataclass
class Store:
    """One session and the repositories that share it."""

    session: Session
    servers: TrackedServerRepository
    accounts: AccountRepository
    webhooks: WebhookRepository


@contextmanager
def open_store(database_url: str | None = None) -> Iterator[Store]:
    url = get_manager().resolve_database_url(database_url)
    session = create_session_factory(url)()
    try:
        yield Store(
            session=session,
            servers=TrackedServerRepository(session),
            accounts=AccountRepository(session),
            webhooks=WebhookRepository(session),
        )
    finally:
        session.close()
        session.get_bind().dispose()


def make_notifier(store: Store) -> EventNotifier:
    settings = get_manager().config.notifier
    return EventNotifier(
        store.webhooks, username=settings.username, max_workers=settings.max_workers,
    )


def extract_items(data: Any) -> list[dict[str, Any]]:
    """Unwrap the ``attributes`` of every object in a panel list response."""
    items = data.get("data", []) if isinstance(data, dict) else list(data or [])
    return [item.get("attributes", item) for item in items]


def extract_pagination(data: Any) -> dict[str, Any]:
    if isinstance(data, dict):
        return data.get("meta", {}).get("pagination", {})
    return {}


def print_report(console: Any, report: Any) -> None:
    """One line summarising a NotificationReport."""
    if report.error:
        console.print(f"[yellow]Notification skipped: {report.error}[/]")
    elif report.failed:
        console.print(
            f"[yellow]Notified {len(report.delivered)}/{report.matched} webhooks "
            f"({len(report.failed)} failed).[/]"
        )
    elif report.matched:
        console.print(f"[dim]Notified {report.matched} webhook(s).[/]")
