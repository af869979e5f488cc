"""Integration tests for webhook commands."""

from __future__ import annotations

import json

import httpx
import respx
from typer.testing import CliRunner

from helium.app import app
from helium.store.repositories import WebhookRepository

runner = CliRunner()

DISCORD = "https://discord.com/api/webhooks/1/abc"


def _add(*extra: str) -> None:
    result = runner.invoke(app, ["webhook", "add", "ops", "--url", DISCORD, *extra])
    assert result.exit_code == 0, result.output


class TestWebhookCrud:
    def test_add_and_list(self, cli_config):
        _add("-e", "server.suspended", "-e", "server.deleted")
        result = runner.invoke(app, ["webhook", "list", "-f", "json"])
        assert result.exit_code == 0
        [hook] = json.loads(result.output)
        assert hook["name"] == "ops"
        assert hook["event_types"] == ["server.suspended", "server.deleted"]
        assert hook["enabled"] is True

    def test_add_rejects_non_discord_url(self, cli_config):
        result = runner.invoke(
            app, ["webhook", "add", "ops", "--url", "https://example.com/hook", "-e", "*"],
        )
        assert result.exit_code == 1
        assert "Invalid Discord webhook URL" in result.output

    def test_add_requires_events(self, cli_config):
        result = runner.invoke(app, ["webhook", "add", "ops", "--url", DISCORD])
        assert result.exit_code == 1

    def test_update_disables(self, cli_config, cli_db):
        _add("-e", "*")
        result = runner.invoke(app, ["webhook", "update", "1", "--disable"])
        assert result.exit_code == 0
        assert WebhookRepository(cli_db).get(1).enabled is False

    def test_show_missing(self, cli_config):
        result = runner.invoke(app, ["webhook", "show", "3"])
        assert result.exit_code == 4

    def test_remove(self, cli_config):
        _add("-e", "*")
        assert runner.invoke(app, ["webhook", "remove", "1", "--force"]).exit_code == 0
        assert runner.invoke(app, ["webhook", "remove", "1", "--force"]).exit_code == 4


class TestDelivery:
    @respx.mock
    def test_test_message(self, cli_config):
        _add("-e", "*")
        route = respx.post(DISCORD).mock(return_value=httpx.Response(204))
        result = runner.invoke(app, ["webhook", "test", "1"])
        assert result.exit_code == 0
        body = json.loads(route.calls[0].request.content)
        assert body["embeds"][0]["title"] == "🧪 Test Notification"

    @respx.mock
    def test_test_message_failure(self, cli_config):
        _add("-e", "*")
        respx.post(DISCORD).mock(return_value=httpx.Response(404))
        result = runner.invoke(app, ["webhook", "test", "1"])
        assert result.exit_code == 1

    @respx.mock
    def test_trigger_fans_out(self, cli_config):
        _add("-e", "coins.added")
        _add("-e", "server.deleted")
        route = respx.post(DISCORD).mock(return_value=httpx.Response(204))

        result = runner.invoke(
            app, ["webhook", "trigger", "coins.added", "--data", '{"user_id": "u1", "coins": 50}'],
        )

        assert result.exit_code == 0, result.output
        assert route.call_count == 1
        embed = json.loads(route.calls[0].request.content)["embeds"][0]
        assert {"name": "Coins", "value": "50", "inline": True} in embed["fields"]

    @respx.mock
    def test_trigger_panel_event_is_translated(self, cli_config):
        _add("-e", "server.modified")
        route = respx.post(DISCORD).mock(return_value=httpx.Response(204))
        data = json.dumps({"server": {"id": 7, "name": "mc-7"}, "user": {"id": "u1", "username": "alice"}})

        result = runner.invoke(app, ["webhook", "trigger", "server:updated", "--data", data])

        assert result.exit_code == 0, result.output
        assert route.call_count == 1
        embed = json.loads(route.calls[0].request.content)["embeds"][0]
        assert embed["title"] == "⚙️ Server Modified"
        assert {"name": "Server Name", "value": "mc-7", "inline": True} in embed["fields"]

    def test_trigger_unknown_panel_event(self, cli_config):
        result = runner.invoke(app, ["webhook", "trigger", "node:created"])
        assert result.exit_code == 7
        assert "Unknown panel event" in result.output

    def test_trigger_without_subscribers(self, cli_config):
        result = runner.invoke(app, ["webhook", "trigger", "server.created"])
        assert result.exit_code == 0
        assert "No webhooks subscribe" in result.output

    def test_trigger_bad_json(self, cli_config):
        result = runner.invoke(app, ["webhook", "trigger", "server.created", "--data", "[1, 2]"])
        assert result.exit_code == 7
