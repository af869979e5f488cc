"""Panel user models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class PanelUser(BaseModel):
    """Attributes of an application-API user object."""

    id: int
    external_id: str | None = None
    uuid: str | None = None
    username: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    root_admin: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PanelUser:
        return cls.model_validate(data.get("attributes", data))
