"""Pterodactyl application API client with retry, backoff and a read cache."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx

from helium.client.auth import resolve_auth
from helium.client.cache import TTLCache, make_key
from helium.client.errors import (
    AuthenticationError,
    ConflictError,
    HeliumError,
    NotFoundError,
    PanelAPIError,
    PanelConnectionError,
    RateLimitExceededError,
    ValidationError,
)
from helium.config.constants import APPLICATION_API_BASE
from helium.config.models import PanelProfile
from helium.models.common import HealthStatus, RateLimitInfo
from helium.models.server import ServerRequest

logger = logging.getLogger(__name__)

_SERVER_INCLUDES = "allocations,user"


class PanelClient:
    """Synchronous HTTP client for the Pterodactyl application API.

    Every call goes through :meth:`request`, which retries 429, 5xx and
    network failures with exponential backoff (``retry_delay * 2**attempt``
    milliseconds, or the panel's ``Retry-After`` hint on 429) up to
    ``max_retries`` times. Other 4xx responses are mapped to typed errors
    without retrying.

    Reads of single servers, server lists and users are memoized for
    ``cache_ttl`` seconds. Mutations evict the entries of the server they
    touch before returning.
    """

    def __init__(
        self,
        profile: PanelProfile,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.profile = profile
        self.base_url = f"{profile.url}{APPLICATION_API_BASE}"
        self.max_retries = profile.max_retries
        self.retry_delay = profile.retry_delay
        self.cache = TTLCache(profile.cache_ttl, clock=clock)
        self._sleep = sleep
        self._rate_limit = RateLimitInfo()
        if not profile.verify_ssl:
            logger.warning("TLS certificate verification is disabled for %s", profile.url)
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=resolve_auth(profile),
            verify=profile.verify_ssl,
            timeout=profile.timeout,
            transport=transport,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> PanelClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # -- transport -----------------------------------------------------

    def _backoff_ms(self, attempt: int) -> float:
        return self.retry_delay * (2 ** attempt)

    @staticmethod
    def _retry_after_ms(response: httpx.Response) -> float | None:
        value = response.headers.get("retry-after")
        if value is None:
            return None
        try:
            return float(value) * 1000
        except ValueError:
            return None

    def _update_rate_limit(self, response: httpx.Response) -> None:
        changes: dict[str, Any] = {}
        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining is not None:
            try:
                changes["remaining"] = int(remaining)
            except ValueError:
                pass
        reset = response.headers.get("x-ratelimit-reset")
        if reset is not None:
            try:
                changes["reset_at"] = datetime.fromtimestamp(int(reset), tz=timezone.utc)
            except (ValueError, OverflowError, OSError):
                pass
        if changes:
            self._rate_limit = self._rate_limit.model_copy(update=changes)

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response
        status = response.status_code
        try:
            body = response.json()
            errors = body.get("errors") or []
            detail = errors[0].get("detail", response.text) if errors else response.text
        except (json.JSONDecodeError, AttributeError, IndexError):
            detail = response.text
        if status in (401, 403):
            raise AuthenticationError("Authentication failed. Check your panel API key.")
        if status == 404:
            raise NotFoundError(f"Not found: {detail}")
        if status == 409:
            raise ConflictError(f"Conflict: {detail}")
        if status == 422:
            raise ValidationError(detail)
        raise PanelAPIError(status, detail)

    def _wait(self, delay_ms: float, reason: str, attempt: int) -> None:
        logger.warning(
            "%s. Retrying after %.0fms (%d/%d)",
            reason, delay_ms, attempt + 1, self.max_retries,
        )
        self._sleep(delay_ms / 1000)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> httpx.Response:
        """Send a request, retrying transient failures, and return the response."""
        attempt = 0
        while True:
            try:
                response = self._client.request(method, path, params=params, json=json_body)
            except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
                raise PanelConnectionError(
                    f"Invalid URL for panel at {self.profile.url}: {exc}"
                ) from exc
            except httpx.TransportError as exc:
                if attempt < self.max_retries:
                    self._wait(self._backoff_ms(attempt), f"Network error ({exc})", attempt)
                    attempt += 1
                    continue
                if isinstance(exc, httpx.TimeoutException):
                    raise PanelConnectionError(
                        f"Request to {self.profile.url} timed out: {exc}"
                    ) from exc
                raise PanelConnectionError(
                    f"Cannot connect to panel at {self.profile.url}: {exc}"
                ) from exc
            except httpx.RequestError as exc:
                # Decoding errors, redirect loops: the response itself is unusable
                raise PanelConnectionError(
                    f"Bad response from panel at {self.profile.url}: {exc}"
                ) from exc

            status = response.status_code
            if status == 429:
                if attempt < self.max_retries:
                    hint = self._retry_after_ms(response)
                    delay = hint if hint is not None else self._backoff_ms(attempt)
                    self._wait(delay, "Rate limited", attempt)
                    attempt += 1
                    continue
                raise RateLimitExceededError(attempt + 1)
            if status >= 500 and attempt < self.max_retries:
                self._wait(self._backoff_ms(attempt), f"Server error {status}", attempt)
                attempt += 1
                continue

            self._handle_response(response)
            self._update_rate_limit(response)
            return response

    def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Like :meth:`request` but return the decoded body (``None`` when empty)."""
        response = self.request(method, path, params=params, json_body=json_body)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PanelAPIError(
                response.status_code, f"Invalid JSON in response: {response.text[:200]}"
            ) from exc

    def _cached_get(
        self, path: str, params: dict[str, Any] | None, fresh: bool,
    ) -> Any:
        key = make_key("GET", path, params)
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached
        data = self.request_json("GET", path, params=params)
        self.cache.set(key, data)
        return data

    def _evict_server(self, server_id: int | str) -> None:
        self.cache.evict_paths([f"/servers/{server_id}"])

    # -- operations ----------------------------------------------------

    def health_check(self) -> HealthStatus:
        """Probe the panel with a one-row user listing. Never raises."""
        now = datetime.now(timezone.utc)
        try:
            self.request_json("GET", "/users", params={"per_page": 1})
        except HeliumError as exc:
            error: Any = exc.detail if isinstance(exc, PanelAPIError) else str(exc)
            return HealthStatus(
                status="unhealthy",
                message=str(exc) or "Failed to connect to Pterodactyl API",
                timestamp=now,
                error=error,
            )
        return HealthStatus(
            status="healthy",
            message="Successfully connected to Pterodactyl API",
            timestamp=now,
        )

    def get_server(self, server_id: int | str, fresh: bool = False) -> dict[str, Any]:
        return self._cached_get(
            f"/servers/{server_id}", {"include": _SERVER_INCLUDES}, fresh,
        )

    def list_servers(
        self, options: dict[str, Any] | None = None, fresh: bool = False,
    ) -> dict[str, Any]:
        return self._cached_get("/servers", dict(options or {}), fresh)

    def get_all_servers(self, *, per_page: int = 100) -> list[dict[str, Any]]:
        """Walk every page of ``/servers``, bypassing the cache."""
        servers: list[dict[str, Any]] = []
        page = 1
        while True:
            data = self.request_json(
                "GET", "/servers", params={"page": page, "per_page": per_page},
            )
            servers.extend(data.get("data", []))
            pagination = data.get("meta", {}).get("pagination", {})
            if page >= pagination.get("total_pages", 1):
                break
            page += 1
        return servers

    def get_user(self, user_id: int | str, fresh: bool = False) -> dict[str, Any]:
        return self._cached_get(f"/users/{user_id}", {"include": "servers"}, fresh)

    def list_users(self, options: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.request_json("GET", "/users", params=dict(options or {}))

    def create_server(self, request: ServerRequest) -> dict[str, Any]:
        data = self.request_json("POST", "/servers", json_body=request.to_api())
        self.cache.evict_paths(["/servers"])
        return data

    def _mutate_server(
        self, server_id: int | str, method: str, path: str, body: Any = None,
    ) -> Any:
        # Evict whether or not the call succeeded.
        try:
            return self.request_json(method, path, json_body=body)
        finally:
            self._evict_server(server_id)

    def update_server_build(
        self, server_id: int | str, build: dict[str, Any],
    ) -> dict[str, Any]:
        return self._mutate_server(
            server_id, "PATCH", f"/servers/{server_id}/build", build,
        )

    def update_server_details(
        self, server_id: int | str, details: dict[str, Any],
    ) -> dict[str, Any]:
        return self._mutate_server(
            server_id, "PATCH", f"/servers/{server_id}/details", details,
        )

    def suspend_server(self, server_id: int | str) -> None:
        self._mutate_server(server_id, "POST", f"/servers/{server_id}/suspend")

    def unsuspend_server(self, server_id: int | str) -> None:
        self._mutate_server(server_id, "POST", f"/servers/{server_id}/unsuspend")

    def delete_server(self, server_id: int | str, force: bool = False) -> None:
        path = f"/servers/{server_id}/force" if force else f"/servers/{server_id}"
        self._mutate_server(server_id, "DELETE", path)

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_rate_limit_info(self) -> RateLimitInfo:
        return self._rate_limit
