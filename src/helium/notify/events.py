"""Domain event fan-out to Discord webhook subscriptions."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

import httpx
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from helium.config.constants import DEFAULT_NOTIFIER_USERNAME
from helium.notify.webhook import BLURPLE, create_embed, send_discord_webhook
from helium.store.repositories import WebhookRepository

logger = logging.getLogger(__name__)

EVENT_COLORS: dict[str, int] = {
    "server.created": 0x57F287,
    "server.deleted": 0xED4245,
    "server.modified": 0xFEE75C,
    "server.suspended": 0xEB459E,
    "server.unsuspended": 0x57F287,
    "server.renewed": 0x2ECC71,
    "user.registered": 0x5865F2,
    "user.login": 0x3BA55D,
    "coins.added": 0xFEE75C,
    "coins.spent": 0xED4245,
    "resource.purchased": 0x5865F2,
    "admin.action": 0xEB459E,
}

EVENT_TITLES: dict[str, str] = {
    "server.created": "🚀 Server Created",
    "server.deleted": "🗑️ Server Deleted",
    "server.modified": "⚙️ Server Modified",
    "server.suspended": "⏸️ Server Suspended",
    "server.unsuspended": "▶️ Server Unsuspended",
    "server.renewed": "🔄 Server Renewed",
    "user.registered": "👤 New User Registered",
    "user.login": "🔐 User Login",
    "coins.added": "💰 Coins Added",
    "coins.spent": "💸 Coins Spent",
    "resource.purchased": "🛒 Resource Purchased",
    "admin.action": "🔧 Admin Action",
}

# Templates are formatted with the metadata; missing keys render as "Unknown".
EVENT_DESCRIPTIONS: dict[str, str] = {
    "server.created": "A new server **{server_name}** has been created.",
    "server.deleted": "Server **{server_name}** has been deleted.",
    "server.modified": "Server **{server_name}** has been modified.",
    "server.suspended": "Server **{server_name}** has been suspended.",
    "server.unsuspended": "Server **{server_name}** has been unsuspended.",
    "server.renewed": "Server **{server_name}** has been renewed.",
    "user.registered": "New user **{username}** has registered.",
    "user.login": "User **{username}** has logged in.",
    "coins.added": "Coins have been added to **{username}**.",
    "coins.spent": "**{username}** spent coins.",
    "resource.purchased": "**{username}** purchased resources.",
    "admin.action": "Admin action performed by **{admin}**.",
}

EVENT_TYPES = tuple(EVENT_TITLES)

# (metadata key, field name, value format)
_FIELD_SPECS: tuple[tuple[str, str, str], ...] = (
    ("user_id", "User ID", "{}"),
    ("username", "Username", "{}"),
    ("server_id", "Server ID", "{}"),
    ("server_name", "Server Name", "{}"),
    ("coins", "Coins", "{}"),
    ("ram", "RAM", "{} MB"),
    ("disk", "Disk", "{} MB"),
    ("cpu", "CPU", "{}%"),
)


class _UnknownDefault(dict):
    def __missing__(self, key: str) -> str:
        return "Unknown"


def format_event_title(event_type: str) -> str:
    return EVENT_TITLES.get(event_type, "📢 Event Notification")


def format_event_description(event_type: str, metadata: dict[str, Any]) -> str:
    if metadata.get("description"):
        return str(metadata["description"])
    template = EVENT_DESCRIPTIONS.get(event_type)
    if template is None:
        return "An event has occurred."
    values = _UnknownDefault({k: v for k, v in metadata.items() if v is not None})
    return template.format_map(values)


def format_event_fields(metadata: dict[str, Any]) -> list[dict[str, Any]]:
    fields = [
        {"name": name, "value": fmt.format(metadata[key]), "inline": True}
        for key, name, fmt in _FIELD_SPECS
        if metadata.get(key) is not None
    ]
    fields.extend(metadata.get("fields") or [])
    return fields


def format_event_embed(event_type: str, metadata: dict[str, Any]) -> dict[str, Any]:
    return create_embed(
        format_event_title(event_type),
        format_event_description(event_type, metadata),
        color=EVENT_COLORS.get(event_type, BLURPLE),
        fields=format_event_fields(metadata) or None,
        footer={"text": f"Helium • {event_type}"},
    )


class NotificationReport(BaseModel):
    """Outcome of one :meth:`EventNotifier.trigger_event` call.

    Delivery is best effort: callers read this for logging or display,
    it never signals that their own operation failed.
    """

    event_type: str
    matched: int = 0
    delivered: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed


class EventNotifier:
    """Formats domain events and posts them to every matching subscription."""

    def __init__(
        self,
        webhooks: WebhookRepository,
        *,
        client: httpx.Client | None = None,
        username: str = DEFAULT_NOTIFIER_USERNAME,
        max_workers: int = 4,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.webhooks = webhooks
        self.username = username
        self.max_workers = max_workers
        self._sleep = sleep
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=10.0)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> EventNotifier:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def build_payload(self, event_type: str, metadata: dict[str, Any]) -> dict[str, Any]:
        return {
            "username": self.username,
            "embeds": [format_event_embed(event_type, metadata)],
        }

    def _deliver(self, url: str, payload: dict[str, Any]) -> bool:
        return send_discord_webhook(self._client, url, payload, sleep=self._sleep)

    def trigger_event(
        self, event_type: str, metadata: dict[str, Any] | None = None,
    ) -> NotificationReport:
        """Deliver *event_type* to all enabled subscriptions that accept it.

        Deliveries run concurrently and the call returns once all of them
        have settled. Nothing raised by a delivery or by loading the
        subscription list escapes this method.
        """
        metadata = dict(metadata or {})
        report = NotificationReport(event_type=event_type)
        try:
            targets = [
                (hook.id, hook.webhook_url)
                for hook in self.webhooks.list_enabled()
                if hook.accepts(event_type)
            ]
        except SQLAlchemyError as exc:
            logger.exception("Could not load webhook subscriptions for %s", event_type)
            report.error = f"Could not load webhook subscriptions: {exc}"
            return report

        report.matched = len(targets)
        if not targets:
            return report

        payload = self.build_payload(event_type, metadata)
        workers = min(self.max_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(self._deliver, url, payload): hook_id for hook_id, url in targets}
            for future in as_completed(futures):
                hook_id = futures[future]
                try:
                    ok = future.result()
                except Exception:
                    logger.exception("Webhook %s delivery raised for %s", hook_id, event_type)
                    ok = False
                (report.delivered if ok else report.failed).append(hook_id)

        report.delivered.sort()
        report.failed.sort()
        if report.failed:
            logger.error(
                "Event %s: %d/%d webhook deliveries failed",
                event_type, len(report.failed), report.matched,
            )
        return report
