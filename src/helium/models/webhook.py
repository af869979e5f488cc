"""Webhook subscription input models."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

WILDCARD = "*"
_DISCORD_WEBHOOK_MARKER = "discord.com/api/webhooks/"


def validate_webhook_url(url: str) -> str:
    """Require an http(s) URL pointing at a Discord webhook endpoint."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Invalid Discord webhook URL")
    if _DISCORD_WEBHOOK_MARKER not in url:
        raise ValueError("Invalid Discord webhook URL")
    return url


def validate_event_types(event_types: list[str]) -> list[str]:
    cleaned = [e.strip() for e in event_types if e and e.strip()]
    if not cleaned:
        raise ValueError("event_types must be a non-empty list")
    return list(dict.fromkeys(cleaned))


class WebhookCreate(BaseModel):
    """Fields accepted when registering a webhook."""

    name: str = Field(min_length=1)
    webhook_url: str
    event_types: list[str]
    server_id: str | None = None
    enabled: bool = True

    @field_validator("webhook_url")
    @classmethod
    def check_url(cls, v: str) -> str:
        return validate_webhook_url(v)

    @field_validator("event_types")
    @classmethod
    def check_events(cls, v: list[str]) -> list[str]:
        return validate_event_types(v)


class WebhookUpdate(BaseModel):
    """Partial update; ``None`` means leave unchanged."""

    name: str | None = Field(default=None, min_length=1)
    webhook_url: str | None = None
    event_types: list[str] | None = None
    server_id: str | None = None
    enabled: bool | None = None

    @field_validator("webhook_url")
    @classmethod
    def check_url(cls, v: str | None) -> str | None:
        return validate_webhook_url(v) if v is not None else v

    @field_validator("event_types")
    @classmethod
    def check_events(cls, v: list[str] | None) -> list[str] | None:
        return validate_event_types(v) if v is not None else v
