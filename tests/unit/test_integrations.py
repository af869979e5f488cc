"""Tests for the event helper functions."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from helium.notify import integrations
from helium.notify.events import EventNotifier


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=EventNotifier)


def _call(notifier: MagicMock) -> tuple[str, dict]:
    args = notifier.trigger_event.call_args.args
    return args[0], args[1]


class TestHelpers:
    def test_server_created_carries_limits(self, notifier, server_payload):
        attrs = server_payload(3, name="mc")["attributes"]
        integrations.on_server_created(notifier, attrs, user_id="u1")
        event, meta = _call(notifier)
        assert event == "server.created"
        assert meta["server_name"] == "mc"
        assert meta["ram"] == 1024
        assert meta["disk"] == 5120
        assert meta["cpu"] == 100

    def test_server_deleted_reason_becomes_description(self, notifier):
        integrations.on_server_deleted(notifier, 3, reason="expired", automatic=True)
        event, meta = _call(notifier)
        assert event == "server.deleted"
        assert meta["description"] == "expired"

    def test_server_renewed_fields(self, notifier):
        integrations.on_server_renewed(notifier, 3, "u1", 100, "2024-01-01", automatic=True)
        event, meta = _call(notifier)
        assert event == "server.renewed"
        assert meta["coins"] == 100
        assert {"name": "Automatic", "value": "yes", "inline": True} in meta["fields"]

    def test_coins_spent(self, notifier):
        integrations.on_coins_spent(notifier, "u1", "alice", 30, "a renewal")
        event, meta = _call(notifier)
        assert event == "coins.spent"
        assert meta["description"] == "Spent 30 coins on a renewal"


class TestMapPanelEvent:
    def test_known_event(self):
        mapped = integrations.map_panel_event({
            "event": "server:updated",
            "server": {"id": 1, "name": "mc"},
            "user": {"id": "u1", "username": "alice"},
        })
        assert mapped == ("server.modified", {
            "server_id": 1, "server_name": "mc", "user_id": "u1", "username": "alice",
        })

    def test_unknown_event(self):
        assert integrations.map_panel_event({"event": "node:created"}) is None
