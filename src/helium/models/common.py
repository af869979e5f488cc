"""Common response models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class HealthStatus(BaseModel):
    """Result of a panel connectivity probe."""

    status: Literal["healthy", "unhealthy"]
    message: str
    timestamp: datetime
    error: Any = None

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"


class RateLimitInfo(BaseModel):
    """Snapshot of the last rate-limit headers seen from the panel.

    Both fields stay ``None`` until a response carrying the headers arrives.
    """

    model_config = ConfigDict(frozen=True)

    remaining: int | None = None
    reset_at: datetime | None = None


class PaginationMetadata(BaseModel):
    """Pagination block from ``meta.pagination`` in panel list responses."""

    total: int = 0
    count: int = 0
    per_page: int = 0
    current_page: int = 1
    total_pages: int = 1
