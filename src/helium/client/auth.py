"""Authentication for the Pterodactyl application API."""

from __future__ import annotations

from collections.abc import Generator

import httpx

from helium.config.models import PanelProfile


class PanelKeyAuth(httpx.Auth):
    """Authenticate with a panel application API key (Bearer header)."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def auth_flow(
        self, request: httpx.Request,
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self.api_key}"
        yield request


def resolve_auth(profile: PanelProfile) -> httpx.Auth | None:
    """Resolve authentication from a panel profile."""
    if profile.api_key:
        return PanelKeyAuth(profile.api_key)
    return None
