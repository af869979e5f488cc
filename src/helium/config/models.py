"""Pydantic models for Helium configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from helium.config.constants import (
    DAY_MS,
    DEFAULT_CACHE_TTL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_NOTIFIER_USERNAME,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT,
)


class PanelProfile(BaseModel):
    """A named Pterodactyl panel connection profile."""

    name: str
    url: str = Field(description="Panel base URL, e.g. https://panel.example.com")
    api_key: str | None = Field(
        default=None, description="Application API key (ptla_...)",
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, le=600, description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, ge=0, le=10,
        description="Retries on 429/5xx/network errors",
    )
    retry_delay: int = Field(
        default=DEFAULT_RETRY_DELAY_MS, ge=0,
        description="Base backoff unit in milliseconds",
    )
    cache_ttl: int = Field(
        default=DEFAULT_CACHE_TTL, ge=0, description="Read cache TTL in seconds",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def auth_configured(self) -> bool:
        return self.api_key is not None


class RenewalSettings(BaseModel):
    """Server renewal, suspension and deletion policy.

    Periods are whole days, matching how the dashboard presents them.
    A ``deletion_period`` of ``0`` disables automatic deletion.
    """

    enabled: bool = False
    renewal_period: int = Field(default=7, gt=0, description="Days added per renewal")
    grace_period: int = Field(default=1, ge=0, description="Days tolerated after expiry")
    deletion_period: int = Field(
        default=7, ge=0, description="Days suspended before deletion (0 = never)",
    )
    renewal_cost: int = Field(default=100, ge=0, description="Coins per renewal")
    auto_suspend: bool = True
    auto_renewal: bool = True

    @property
    def renewal_period_ms(self) -> int:
        return self.renewal_period * DAY_MS

    @property
    def grace_period_ms(self) -> int:
        return self.grace_period * DAY_MS

    @property
    def deletion_period_ms(self) -> int:
        return self.deletion_period * DAY_MS


# Fields `helium config renewal` may change; anything else is rejected.
RENEWAL_MUTABLE_FIELDS = frozenset(RenewalSettings.model_fields)


class NotifierSettings(BaseModel):
    """Outbound Discord webhook settings."""

    username: str = DEFAULT_NOTIFIER_USERNAME
    max_workers: int = Field(default=4, gt=0, le=32)


class HeliumConfig(BaseModel):
    """Root configuration model."""

    default_profile: str | None = None
    default_format: str = "table"
    database_url: str | None = None
    profiles: dict[str, PanelProfile] = Field(default_factory=dict)
    renewal: RenewalSettings = Field(default_factory=RenewalSettings)
    notifier: NotifierSettings = Field(default_factory=NotifierSettings)
