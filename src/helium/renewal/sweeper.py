"""Scheduled expiration sweep: renew, suspend or delete expired servers."""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from helium.client.errors import HeliumError, NotFoundError, SweepAbortedError
from helium.client.panel import PanelClient
from helium.config.constants import EXPIRING_SOON_MS, SWEEP_INTERVAL_SECONDS
from helium.config.models import RenewalSettings
from helium.notify import integrations
from helium.notify.events import EventNotifier
from helium.store.models import Account, TrackedServer
from helium.store.repositories import AccountRepository, TrackedServerRepository

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def format_ms(ts: int | None) -> str:
    if ts is None:
        return ""
    return datetime.fromtimestamp(ts / 1000, tz=timezone.utc).isoformat()


class Lifecycle(str, enum.Enum):
    RENEW = "renew"
    DELETE = "delete"
    SUSPEND = "suspend"
    EXPIRING_SOON = "expiring-soon"
    GRACE_PERIOD = "grace-period"
    SUSPENDED = "suspended"
    ACTIVE = "active"
    UNTRACKED = "untracked"


def classify(
    record: TrackedServer,
    now: int,
    settings: RenewalSettings,
    *,
    consider_renewal: bool = True,
) -> Lifecycle:
    """Decide what a sweep should do with *record* at time *now* (epoch ms).

    Renewal is checked first so a server that can still renew is never
    suspended in the same pass. ``SUSPENDED`` and ``GRACE_PERIOD`` are
    expired states that need no action this tick.
    """
    if record.expires_at is None:
        return Lifecycle.UNTRACKED
    elapsed = now - record.expires_at
    grace = settings.grace_period_ms

    if (
        consider_renewal
        and settings.auto_renewal
        and record.auto_renew
        and 0 < elapsed <= grace
    ):
        return Lifecycle.RENEW
    if (
        settings.deletion_period > 0
        and elapsed > grace + settings.deletion_period_ms
        and record.suspended
    ):
        return Lifecycle.DELETE
    if settings.auto_suspend and elapsed > grace and not record.suspended:
        return Lifecycle.SUSPEND
    if 0 < -elapsed < EXPIRING_SOON_MS:
        return Lifecycle.EXPIRING_SOON
    if elapsed > 0:
        return Lifecycle.SUSPENDED if record.suspended else Lifecycle.GRACE_PERIOD
    return Lifecycle.ACTIVE


class SweepSummary(BaseModel):
    """Counters for one sweep tick."""

    status: str = "completed"
    processed: int = 0
    renewed: int = 0
    auto_renew_disabled: int = 0
    suspended: int = 0
    deleted: int = 0
    expiring_soon: int = 0
    failed: int = 0

    @property
    def changed(self) -> bool:
        return any(
            (self.renewed, self.auto_renew_disabled, self.suspended,
             self.deleted, self.expiring_soon, self.failed)
        )


class ExpirationSweeper:
    """Enforces the renewal policy over every tracked server.

    Servers are processed one at a time; a failure on one server is logged
    and counted, and the sweep moves on. Failing to list tracked servers
    aborts the tick with :class:`SweepAbortedError`.
    """

    def __init__(
        self,
        servers: TrackedServerRepository,
        accounts: AccountRepository,
        panel: PanelClient,
        settings: RenewalSettings,
        *,
        notifier: EventNotifier | None = None,
        clock: Callable[[], int] = now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.servers = servers
        self.accounts = accounts
        self.panel = panel
        self.settings = settings
        self.notifier = notifier
        self._clock = clock
        self._sleep = sleep

    def sweep(self, now: int | None = None) -> SweepSummary:
        if not self.settings.enabled:
            return SweepSummary(status="disabled")
        now = self._clock() if now is None else now
        logger.info("Checking for expired servers...")

        try:
            records = self.servers.list_tracked()
        except SQLAlchemyError as exc:
            logger.exception("Could not read tracked servers")
            raise SweepAbortedError(f"Could not read tracked servers: {exc}") from exc

        summary = SweepSummary()
        for record in records:
            server_id = record.server_id
            summary.processed += 1
            try:
                self._process(record, now, summary)
            except (HeliumError, SQLAlchemyError):
                logger.exception("Error processing server %s", server_id)
                self.servers.db.rollback()
                summary.failed += 1

        if summary.changed:
            logger.info(
                "Processed %d servers - %d auto-renewed, %d suspended, %d deleted, "
                "%d expiring soon, %d failed",
                summary.processed, summary.renewed, summary.suspended,
                summary.deleted, summary.expiring_soon, summary.failed,
            )
        return summary

    def _process(self, record: TrackedServer, now: int, summary: SweepSummary) -> None:
        state = classify(record, now, self.settings)
        if state is Lifecycle.RENEW:
            if self._auto_renew(record, now, summary):
                summary.renewed += 1
                return
            state = classify(record, now, self.settings, consider_renewal=False)

        if state is Lifecycle.DELETE:
            self._delete(record)
            summary.deleted += 1
        elif state is Lifecycle.SUSPEND:
            self._suspend(record)
            summary.suspended += 1
        elif state is Lifecycle.EXPIRING_SOON:
            summary.expiring_soon += 1

    def _find_owner(self, record: TrackedServer) -> Account | None:
        if record.owner_id:
            account = self.accounts.get(record.owner_id)
            if account is not None:
                return account
        data = self.panel.get_server(record.server_id, fresh=True)
        panel_user = (data or {}).get("attributes", {}).get("user")
        if panel_user is None:
            return None
        account = self.accounts.get_by_panel_user(int(panel_user))
        if account is not None:
            record.owner_id = account.user_id
        return account

    def _auto_renew(self, record: TrackedServer, now: int, summary: SweepSummary) -> bool:
        owner = self._find_owner(record)
        if owner is None:
            logger.warning("Cannot auto-renew server %s: owner not found", record.server_id)
            return False

        cost = self.settings.renewal_cost
        if owner.coins < cost:
            self.servers.set_auto_renew(record, False)
            summary.auto_renew_disabled += 1
            logger.info(
                "Disabled auto-renewal for server %s - insufficient coins", record.server_id,
            )
            return False

        self.accounts.debit(owner, cost, commit=False)
        new_expiry = now + self.settings.renewal_period_ms
        self.servers.renew(record, new_expiry)
        logger.info("Auto-renewed server %s for user %s", record.server_id, owner.user_id)
        if self.notifier is not None:
            integrations.on_server_renewed(
                self.notifier, record.server_id, owner.user_id, cost,
                format_ms(new_expiry), automatic=True,
            )
        return True

    def _suspend(self, record: TrackedServer) -> None:
        self.panel.suspend_server(record.server_id)
        self.servers.mark_suspended(record)
        logger.info("Suspended expired server %s", record.server_id)
        if self.notifier is not None:
            integrations.on_server_suspended(
                self.notifier, record.server_id,
                reason="Server expired and grace period ended", automatic=True,
            )

    def _delete(self, record: TrackedServer) -> None:
        server_id = record.server_id
        try:
            self.panel.delete_server(server_id)
        except NotFoundError:
            logger.info("Server %s already gone from the panel", server_id)
        self.servers.remove(server_id)
        logger.info("Deleted expired server %s", server_id)
        if self.notifier is not None:
            integrations.on_server_deleted(
                self.notifier, server_id,
                reason="Server auto-deleted after suspension period", automatic=True,
            )

    def run_forever(
        self,
        interval: float = SWEEP_INTERVAL_SECONDS,
        max_ticks: int | None = None,
    ) -> int:
        """Sweep every *interval* seconds; return the number of ticks run.

        Ticks run back to back in this loop, so they never overlap. A tick
        that takes longer than *interval* is followed immediately by the next.
        """
        logger.info("Renewal sweep started - checking every %ss", interval)
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            started = time.monotonic()
            try:
                self.sweep()
            except SweepAbortedError as exc:
                logger.error("Sweep aborted: %s", exc)
            except Exception:
                logger.exception("Sweep tick failed")
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
            elapsed = time.monotonic() - started
            if elapsed >= interval:
                logger.warning("Sweep took %.0fs, longer than the %ss interval", elapsed, interval)
                continue
            self._sleep(interval - elapsed)
        return ticks
