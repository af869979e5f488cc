"""Pydantic data models for the Pterodactyl application API."""

from helium.models.common import HealthStatus, PaginationMetadata, RateLimitInfo
from helium.models.server import FeatureLimits, Server, ServerLimits, ServerRequest
from helium.models.user import PanelUser

__all__ = [
    "FeatureLimits",
    "HealthStatus",
    "PaginationMetadata",
    "PanelUser",
    "RateLimitInfo",
    "Server",
    "ServerLimits",
    "ServerRequest",
]
