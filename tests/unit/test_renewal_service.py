"""Tests for user and admin renewal operations."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from helium.client.errors import (
    InsufficientCoinsError,
    NotFoundError,
    PanelAPIError,
    RenewalDisabledError,
)
from helium.client.panel import PanelClient
from helium.config.constants import DAY_MS
from helium.config.models import RenewalSettings
from helium.notify.events import EventNotifier
from helium.renewal.service import RenewalService
from helium.renewal.sweeper import Lifecycle

NOW = 1_700_000_000_000


@pytest.fixture
def panel() -> MagicMock:
    return MagicMock(spec=PanelClient)


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=EventNotifier)


@pytest.fixture
def service(servers, accounts, panel, notifier, renewal_settings) -> RenewalService:
    return RenewalService(
        servers, accounts, panel, renewal_settings, notifier=notifier, clock=lambda: NOW,
    )


class TestTrack:
    def test_track_sets_expiry(self, service, servers):
        record = service.track_server(5, owner_id="u1")
        assert record.expires_at == NOW + 7 * DAY_MS
        assert servers.get(5).owner_id == "u1"

    def test_track_when_disabled(self, servers, accounts):
        service = RenewalService(servers, accounts, None, RenewalSettings(enabled=False))
        assert service.track_server(5) is None
        assert servers.get(5) is None


class TestRenew:
    def test_extends_from_future_expiry(self, service, servers, accounts, notifier):
        accounts.credit("u1", 300)
        servers.track(1, NOW + 2 * DAY_MS, owner_id="u1")

        record = service.renew(1, "u1")

        assert record.expires_at == NOW + 9 * DAY_MS
        assert accounts.balance("u1") == 200
        notifier.trigger_event.assert_called_once()
        assert notifier.trigger_event.call_args.args[0] == "server.renewed"

    def test_extends_from_now_when_expired(self, service, servers, accounts):
        accounts.credit("u1", 100)
        servers.track(1, NOW - 3 * DAY_MS, owner_id="u1")
        assert service.renew(1, "u1").expires_at == NOW + 7 * DAY_MS

    def test_unsuspends_suspended_server(self, service, servers, accounts, panel):
        accounts.credit("u1", 100)
        record = servers.track(1, NOW - 3 * DAY_MS, owner_id="u1")
        servers.mark_suspended(record)

        service.renew(1, "u1")

        panel.unsuspend_server.assert_called_once_with(1)
        assert servers.get(1).suspended is False

    def test_failed_unsuspend_charges_nothing(self, service, servers, accounts, panel):
        accounts.credit("u1", 100)
        record = servers.track(1, NOW - 3 * DAY_MS, owner_id="u1")
        servers.mark_suspended(record)
        panel.unsuspend_server.side_effect = PanelAPIError(500, "node down")

        with pytest.raises(PanelAPIError):
            service.renew(1, "u1")
        assert accounts.balance("u1") == 100
        assert servers.get(1).suspended is True

    def test_insufficient_coins(self, service, servers, accounts):
        accounts.credit("u1", 99)
        servers.track(1, NOW + DAY_MS, owner_id="u1")
        with pytest.raises(InsufficientCoinsError) as exc_info:
            service.renew(1, "u1")
        assert exc_info.value.balance == 99
        assert servers.get(1).expires_at == NOW + DAY_MS

    def test_no_account(self, service):
        with pytest.raises(InsufficientCoinsError):
            service.renew(1, "ghost")

    def test_other_owner_rejected(self, service, servers, accounts):
        accounts.credit("u2", 500)
        servers.track(1, NOW + DAY_MS, owner_id="u1")
        with pytest.raises(NotFoundError):
            service.renew(1, "u2")
        assert accounts.balance("u2") == 500

    def test_untracked_server_gets_tracked(self, service, servers, accounts):
        accounts.credit("u1", 100)
        record = service.renew(8, "u1")
        assert record.owner_id == "u1"
        assert servers.get(8).expires_at == NOW + 7 * DAY_MS

    def test_disabled(self, servers, accounts):
        service = RenewalService(servers, accounts, None, RenewalSettings(enabled=False))
        with pytest.raises(RenewalDisabledError):
            service.renew(1, "u1")


class TestAutoRenewAndAdmin:
    def test_toggle(self, service, servers):
        servers.track(1, NOW + DAY_MS)
        assert service.toggle_auto_renew(1).auto_renew is True
        assert service.toggle_auto_renew(1).auto_renew is False

    def test_enable_refused_when_globally_off(self, servers, accounts, renewal_settings):
        settings = renewal_settings.model_copy(update={"auto_renewal": False})
        service = RenewalService(servers, accounts, None, settings)
        servers.track(1, NOW + DAY_MS)
        with pytest.raises(RenewalDisabledError):
            service.set_auto_renew(1, True)
        assert service.set_auto_renew(1, False).auto_renew is False

    def test_toggle_untracked(self, service):
        with pytest.raises(NotFoundError):
            service.toggle_auto_renew(1)

    def test_set_and_remove_expiry(self, service, servers):
        assert service.set_expiry(3, 2.5).expires_at == NOW + int(2.5 * DAY_MS)
        service.remove_expiry(3)
        assert servers.get(3).expires_at is None

    def test_untrack(self, service, servers):
        servers.track(1, NOW)
        assert service.untrack(1) is True
        assert service.untrack(1) is False

    def test_status(self, service, servers):
        servers.track(1, NOW + 10 * DAY_MS)
        servers.track(2, NOW + DAY_MS)
        servers.track(3, None)
        states = {record.server_id: state for record, state in service.status()}
        assert states == {
            "1": Lifecycle.ACTIVE,
            "2": Lifecycle.EXPIRING_SOON,
            "3": Lifecycle.UNTRACKED,
        }
