"""User and admin renewal operations."""

from __future__ import annotations

import logging
from collections.abc import Callable

from helium.client.errors import InsufficientCoinsError, NotFoundError, RenewalDisabledError
from helium.client.panel import PanelClient
from helium.config.constants import DAY_MS
from helium.config.models import RenewalSettings
from helium.notify import integrations
from helium.notify.events import EventNotifier
from helium.renewal.sweeper import Lifecycle, classify, format_ms, now_ms
from helium.store.models import TrackedServer
from helium.store.repositories import AccountRepository, TrackedServerRepository

logger = logging.getLogger(__name__)


class RenewalService:
    """Tracks expiry on provisioning and handles manual renewals."""

    def __init__(
        self,
        servers: TrackedServerRepository,
        accounts: AccountRepository,
        panel: PanelClient | None,
        settings: RenewalSettings,
        *,
        notifier: EventNotifier | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.servers = servers
        self.accounts = accounts
        self.panel = panel
        self.settings = settings
        self.notifier = notifier
        self._clock = clock

    def _require_enabled(self) -> None:
        if not self.settings.enabled:
            raise RenewalDisabledError("The renewal system is disabled.")

    def track_server(
        self, server_id: int | str, owner_id: str | None = None,
    ) -> TrackedServer | None:
        """Start the expiry clock for a newly provisioned server.

        Returns ``None`` without tracking when renewal is disabled.
        """
        if not self.settings.enabled:
            return None
        expires_at = self._clock() + self.settings.renewal_period_ms
        return self.servers.track(server_id, expires_at, owner_id=owner_id)

    def renew(self, server_id: int | str, user_id: str) -> TrackedServer:
        """Charge *user_id* and push the expiry out by one renewal period.

        The new expiry counts from the current one when it is still in the
        future. A suspended server is unsuspended on the panel first; if
        that fails nothing is charged.
        """
        self._require_enabled()
        record = self.servers.get(server_id)
        if record is not None and record.owner_id and record.owner_id != user_id:
            raise NotFoundError(f"Server {server_id} not found for user {user_id}")

        cost = self.settings.renewal_cost
        account = self.accounts.get(user_id)
        balance = account.coins if account else 0
        if account is None or balance < cost:
            raise InsufficientCoinsError(balance, cost)

        if record is None:
            record = self.servers.track(server_id, None, owner_id=user_id)
        elif not record.owner_id:
            record.owner_id = user_id

        if record.suspended:
            if self.panel is None:
                raise RenewalDisabledError("A panel connection is required to unsuspend.")
            self.panel.unsuspend_server(server_id)

        now = self._clock()
        base = record.expires_at if record.expires_at and record.expires_at > now else now
        new_expiry = base + self.settings.renewal_period_ms
        self.accounts.debit(account, cost, commit=False)
        self.servers.renew(record, new_expiry)
        logger.info(
            "%s renewed server %s for %d coins. New expiry: %s",
            user_id, server_id, cost, format_ms(new_expiry),
        )
        if self.notifier is not None:
            integrations.on_server_renewed(
                self.notifier, server_id, user_id, cost, format_ms(new_expiry),
            )
        return record

    def set_auto_renew(self, server_id: int | str, enabled: bool) -> TrackedServer:
        self._require_enabled()
        if enabled and not self.settings.auto_renewal:
            raise RenewalDisabledError("Auto-renewal is disabled.")
        record = self.servers.require(server_id)
        return self.servers.set_auto_renew(record, enabled)

    def toggle_auto_renew(self, server_id: int | str) -> TrackedServer:
        record = self.servers.require(server_id)
        return self.set_auto_renew(server_id, not record.auto_renew)

    def set_expiry(self, server_id: int | str, days: float) -> TrackedServer:
        """Admin override: expire *days* from now."""
        expires_at = self._clock() + int(days * DAY_MS)
        return self.servers.track(server_id, expires_at)

    def remove_expiry(self, server_id: int | str) -> TrackedServer:
        """Admin override: stop tracking expiry, keeping the row."""
        record = self.servers.require(server_id)
        return self.servers.clear_expiry(record)

    def untrack(self, server_id: int | str) -> bool:
        """Forget a server that was deleted by its owner."""
        return self.servers.remove(server_id)

    def status(self) -> list[tuple[TrackedServer, Lifecycle]]:
        now = self._clock()
        return [
            (record, classify(record, now, self.settings))
            for record in self.servers.list_all()
        ]
