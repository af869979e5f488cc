"""Event helpers called from the places where things happen."""

from __future__ import annotations

from typing import Any

from helium.notify.events import EventNotifier, NotificationReport

PANEL_EVENT_MAP = {
    "server:created": "server.created",
    "server:deleted": "server.deleted",
    "server:updated": "server.modified",
    "server:suspended": "server.suspended",
    "server:unsuspended": "server.unsuspended",
}


def _limits(server: dict[str, Any]) -> dict[str, Any]:
    limits = server.get("limits") or {}
    return {"ram": limits.get("memory"), "disk": limits.get("disk"), "cpu": limits.get("cpu")}


def on_server_created(
    notifier: EventNotifier, server: dict[str, Any], user_id: str | None = None,
    username: str | None = None,
) -> NotificationReport:
    return notifier.trigger_event("server.created", {
        "server_id": server.get("id"),
        "server_name": server.get("name"),
        "user_id": user_id,
        "username": username,
        **_limits(server),
    })


def on_server_modified(
    notifier: EventNotifier, server: dict[str, Any], user_id: str | None = None,
    username: str | None = None,
) -> NotificationReport:
    return notifier.trigger_event("server.modified", {
        "server_id": server.get("id"),
        "server_name": server.get("name"),
        "user_id": user_id,
        "username": username,
        **_limits(server),
    })


def on_server_deleted(
    notifier: EventNotifier, server_id: int | str, server_name: str | None = None,
    reason: str | None = None, automatic: bool = False,
) -> NotificationReport:
    return notifier.trigger_event("server.deleted", {
        "server_id": server_id,
        "server_name": server_name,
        "description": reason,
        "automatic": automatic,
    })


def on_server_suspended(
    notifier: EventNotifier, server_id: int | str, server_name: str | None = None,
    reason: str | None = None, automatic: bool = False,
) -> NotificationReport:
    return notifier.trigger_event("server.suspended", {
        "server_id": server_id,
        "server_name": server_name,
        "description": reason,
        "automatic": automatic,
    })


def on_server_unsuspended(
    notifier: EventNotifier, server_id: int | str, server_name: str | None = None,
) -> NotificationReport:
    return notifier.trigger_event("server.unsuspended", {
        "server_id": server_id,
        "server_name": server_name,
    })


def on_server_renewed(
    notifier: EventNotifier, server_id: int | str, user_id: str | None,
    coins_spent: int, new_expiry: str, automatic: bool = False,
    server_name: str | None = None,
) -> NotificationReport:
    return notifier.trigger_event("server.renewed", {
        "server_id": server_id,
        "server_name": server_name,
        "user_id": user_id,
        "coins": coins_spent,
        "fields": [
            {"name": "New Expiry", "value": new_expiry, "inline": True},
            {"name": "Automatic", "value": "yes" if automatic else "no", "inline": True},
        ],
    })


def on_coins_added(
    notifier: EventNotifier, user_id: str, username: str | None, amount: int,
) -> NotificationReport:
    return notifier.trigger_event("coins.added", {
        "user_id": user_id,
        "username": username,
        "coins": amount,
    })


def on_coins_spent(
    notifier: EventNotifier, user_id: str, username: str | None, amount: int, reason: str,
) -> NotificationReport:
    return notifier.trigger_event("coins.spent", {
        "user_id": user_id,
        "username": username,
        "coins": amount,
        "description": f"Spent {amount} coins on {reason}",
    })


def map_panel_event(event: dict[str, Any]) -> tuple[str, dict[str, Any]] | None:
    """Translate an inbound panel event into ``(event_type, metadata)``.

    Returns ``None`` for events Helium does not announce.
    """
    event_type = PANEL_EVENT_MAP.get(event.get("event", ""))
    if event_type is None:
        return None
    server = event.get("server") or {}
    user = event.get("user") or {}
    return event_type, {
        "server_id": server.get("id"),
        "server_name": server.get("name"),
        "user_id": user.get("id"),
        "username": user.get("username"),
    }
