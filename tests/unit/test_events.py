"""Tests for event formatting and fan-out."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx
import pytest
import respx
from sqlalchemy.exc import OperationalError

from helium.models.webhook import WebhookCreate
from helium.notify.events import (
    EventNotifier,
    format_event_description,
    format_event_embed,
    format_event_fields,
    format_event_title,
)

HOOK_A = "https://discord.com/api/webhooks/1/a"
HOOK_B = "https://discord.com/api/webhooks/2/b"
HOOK_C = "https://discord.com/api/webhooks/3/c"


def _add(webhooks, name, url, events, enabled=True):
    return webhooks.create(WebhookCreate(name=name, webhook_url=url, event_types=events, enabled=enabled))


class TestFormatting:
    def test_known_title(self):
        assert "Server Created" in format_event_title("server.created")

    def test_unknown_title_fallback(self):
        assert format_event_title("custom.thing") == "📢 Event Notification"

    def test_description_template(self):
        assert format_event_description("server.created", {"server_name": "mc"}) == (
            "A new server **mc** has been created."
        )

    def test_description_missing_key(self):
        assert "**Unknown**" in format_event_description("user.login", {})

    def test_description_override(self):
        assert format_event_description("server.deleted", {"description": "bye"}) == "bye"

    def test_unknown_description(self):
        assert format_event_description("custom.thing", {}) == "An event has occurred."

    def test_fields_order_and_units(self):
        fields = format_event_fields({
            "cpu": 150, "ram": 2048, "server_id": 9,
            "fields": [{"name": "Extra", "value": "x", "inline": False}],
        })
        assert [f["name"] for f in fields] == ["Server ID", "RAM", "CPU", "Extra"]
        assert fields[1]["value"] == "2048 MB"
        assert fields[2]["value"] == "150%"

    def test_embed_footer(self):
        embed = format_event_embed("coins.added", {"coins": 5})
        assert embed["footer"] == {"text": "Helium • coins.added"}
        assert embed["color"] == 0xFEE75C


class TestEventNotifier:
    @respx.mock
    def test_delivers_only_to_matching(self, webhooks, sleeper):
        a = _add(webhooks, "a", HOOK_A, ["server.created"])
        b = _add(webhooks, "b", HOOK_B, ["*"])
        _add(webhooks, "c", HOOK_C, ["server.deleted"])
        _add(webhooks, "off", HOOK_C, ["*"], enabled=False)
        route_a = respx.post(HOOK_A).mock(return_value=httpx.Response(204))
        route_b = respx.post(HOOK_B).mock(return_value=httpx.Response(204))
        route_c = respx.post(HOOK_C).mock(return_value=httpx.Response(204))

        with EventNotifier(webhooks, sleep=sleeper) as notifier:
            report = notifier.trigger_event("server.created", {"server_name": "mc"})

        assert report.ok
        assert report.matched == 2
        assert report.delivered == sorted([a.id, b.id])
        assert route_a.call_count == 1
        assert route_b.call_count == 1
        assert not route_c.called
        body = json.loads(route_a.calls.last.request.read())
        assert body["username"] == "Helium Notifications"
        assert body["embeds"][0]["description"] == "A new server **mc** has been created."

    @respx.mock
    def test_failure_is_isolated(self, webhooks, sleeper):
        good = _add(webhooks, "good", HOOK_A, ["*"])
        bad = _add(webhooks, "bad", HOOK_B, ["*"])
        respx.post(HOOK_A).mock(return_value=httpx.Response(204))
        bad_route = respx.post(HOOK_B).mock(return_value=httpx.Response(500))

        with EventNotifier(webhooks, sleep=sleeper) as notifier:
            report = notifier.trigger_event("coins.added", {"coins": 10})

        assert report.delivered == [good.id]
        assert report.failed == [bad.id]
        assert not report.ok
        assert bad_route.call_count == 4

    def test_no_subscribers(self, webhooks):
        with EventNotifier(webhooks) as notifier:
            report = notifier.trigger_event("server.created")
        assert report.matched == 0
        assert report.ok

    def test_load_failure_never_raises(self):
        repo = MagicMock()
        repo.list_enabled.side_effect = OperationalError("SELECT", {}, Exception("db gone"))
        with EventNotifier(repo) as notifier:
            report = notifier.trigger_event("server.created")
        assert report.error is not None
        assert not report.ok

    def test_delivery_exception_counts_as_failed(self, webhooks, monkeypatch: pytest.MonkeyPatch):
        hook = _add(webhooks, "a", HOOK_A, ["*"])
        notifier = EventNotifier(webhooks)

        def boom(url, payload):
            raise RuntimeError("boom")

        monkeypatch.setattr(notifier, "_deliver", boom)
        report = notifier.trigger_event("server.created")
        notifier.close()
        assert report.failed == [hook.id]

    def test_shared_client_not_closed(self, webhooks):
        client = httpx.Client()
        with EventNotifier(webhooks, client=client):
            pass
        assert not client.is_closed
        client.close()
