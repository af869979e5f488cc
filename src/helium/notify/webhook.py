"""Discord webhook delivery with retry and 429 handling."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx

from helium.config.constants import WEBHOOK_BASE_DELAY_MS, WEBHOOK_MAX_RETRIES

logger = logging.getLogger(__name__)

BLURPLE = 0x5865F2
GREEN = 0x57F287


def _retry_after_ms(response: httpx.Response) -> float | None:
    """Discord puts fractional seconds in the JSON body; fall back to the header."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    value = body.get("retry_after") if isinstance(body, dict) else None
    if value is None:
        value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value) * 1000
    except (TypeError, ValueError):
        return None


def send_discord_webhook(
    client: httpx.Client,
    webhook_url: str,
    payload: dict[str, Any],
    *,
    max_retries: int = WEBHOOK_MAX_RETRIES,
    base_delay: float = WEBHOOK_BASE_DELAY_MS,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """POST *payload* to a Discord webhook; return whether it was accepted.

    429, 5xx and network errors are retried up to *max_retries* times
    (``retry_after`` from the response when rate limited, otherwise
    ``base_delay * 2**attempt`` ms). Other 4xx responses fail at once.
    Never raises for delivery problems.
    """
    for attempt in range(max_retries + 1):
        try:
            response = client.post(webhook_url, json=payload)
        except httpx.HTTPError as exc:
            reason = f"request error: {exc}"
            delay = base_delay * (2 ** attempt)
        else:
            if response.is_success:
                return True
            status = response.status_code
            if status == 429:
                hint = _retry_after_ms(response)
                delay = hint if hint is not None else base_delay * (2 ** attempt)
                reason = "rate limited"
            elif status >= 500:
                delay = base_delay * (2 ** attempt)
                reason = f"server error {status}"
            else:
                logger.error(
                    "Discord webhook rejected with %d: %s", status, response.text[:200],
                )
                return False

        if attempt < max_retries:
            logger.warning(
                "Discord webhook %s. Retrying after %.0fms (%d/%d)",
                reason, delay, attempt + 1, max_retries,
            )
            sleep(delay / 1000)
        else:
            logger.error("Discord webhook failed after %d attempts: %s", attempt + 1, reason)
    return False


def create_embed(
    title: str = "Notification",
    description: str = "",
    *,
    color: int = BLURPLE,
    fields: list[dict[str, Any]] | None = None,
    footer: dict[str, Any] | None = None,
    author: dict[str, Any] | None = None,
    thumbnail: str | None = None,
    image: str | None = None,
) -> dict[str, Any]:
    """Build a Discord embed object."""
    embed: dict[str, Any] = {
        "title": title,
        "description": description,
        "color": color,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if fields:
        embed["fields"] = fields
    if footer:
        embed["footer"] = footer
    if author:
        embed["author"] = author
    if thumbnail:
        embed["thumbnail"] = {"url": thumbnail}
    if image:
        embed["image"] = {"url": image}
    return embed


def send_notification(
    client: httpx.Client,
    webhook_url: str,
    title: str,
    description: str,
    color: int = BLURPLE,
    **kwargs: Any,
) -> bool:
    """Send a single-embed message."""
    embed = create_embed(title, description, color=color)
    return send_discord_webhook(client, webhook_url, {"embeds": [embed]}, **kwargs)
