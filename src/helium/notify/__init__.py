"""Discord webhook notifications for server lifecycle and coin events."""

from helium.notify.events import EventNotifier, NotificationReport
from helium.notify.webhook import create_embed, send_discord_webhook, send_notification

__all__ = [
    "EventNotifier",
    "NotificationReport",
    "create_embed",
    "send_discord_webhook",
    "send_notification",
]
