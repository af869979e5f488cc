"""Panel server models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServerLimits(BaseModel):
    """Build limits of a server (MB / percent)."""

    memory: int = 0
    swap: int = 0
    disk: int = 0
    io: int = 500
    cpu: int = 0


class FeatureLimits(BaseModel):
    databases: int = 0
    backups: int = 0
    allocations: int = 1


class Server(BaseModel):
    """Attributes of an application-API server object."""

    id: int
    uuid: str | None = None
    identifier: str | None = None
    name: str
    description: str | None = None
    user: int | None = None
    node: int | None = None
    suspended: bool = False
    limits: ServerLimits = Field(default_factory=ServerLimits)
    feature_limits: FeatureLimits = Field(default_factory=FeatureLimits)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Server:
        """Build from a ``{"object": "server", "attributes": {...}}`` envelope."""
        return cls.model_validate(data.get("attributes", data))


class ServerRequest(BaseModel):
    """Payload for provisioning a new server."""

    name: str
    user: int
    egg: int
    docker_image: str
    startup: str
    environment: dict[str, Any] = Field(default_factory=dict)
    limits: ServerLimits
    feature_limits: FeatureLimits = Field(default_factory=FeatureLimits)
    location_id: int
    description: str = "Provisioned via Helium"

    def to_api(self) -> dict[str, Any]:
        """Render as the panel's ``POST /servers`` body."""
        body = self.model_dump(exclude={"location_id"})
        body["deploy"] = {
            "locations": [self.location_id],
            "dedicated_ip": False,
            "port_range": [],
        }
        return body
