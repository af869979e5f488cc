"""Integration tests for config commands."""

from __future__ import annotations

import json

import httpx
import respx
from typer.testing import CliRunner

from helium.app import app
from helium.config.manager import ConfigManager

runner = CliRunner()


class TestProfileCommands:
    def test_list_empty(self, cli_config: ConfigManager):
        result = runner.invoke(app, ["config", "list"])
        assert result.exit_code == 0
        assert "No profiles configured" in result.output

    def test_add_and_list(self, cli_config: ConfigManager):
        result = runner.invoke(app, ["config", "add", "main", "--url", "https://panel.test", "--api-key", "ptla_x"])
        assert result.exit_code == 0
        assert "added" in result.output

        result = runner.invoke(app, ["config", "list"])
        assert result.exit_code == 0
        assert "main" in result.output

    def test_list_json_hides_keys(self, cli_config: ConfigManager):
        runner.invoke(app, ["config", "add", "main", "--url", "https://panel.test", "--api-key", "ptla_secretkey"])
        result = runner.invoke(app, ["config", "list", "--format", "json"])
        assert result.exit_code == 0
        assert "ptla_secretkey" not in result.output
        assert json.loads(result.output)["profiles"][0]["name"] == "main"

    def test_show_masks_key(self, cli_config: ConfigManager):
        runner.invoke(app, ["config", "add", "main", "--url", "https://panel.test", "--api-key", "ptla_longsecret"])
        result = runner.invoke(app, ["config", "show", "main"])
        assert result.exit_code == 0
        assert "ptla_longsecret" not in result.output

    def test_show_nonexistent(self, cli_config: ConfigManager):
        result = runner.invoke(app, ["config", "show", "nope"])
        assert result.exit_code == 1

    def test_set_default(self, cli_config: ConfigManager):
        runner.invoke(app, ["config", "add", "a", "--url", "https://a.test"])
        runner.invoke(app, ["config", "add", "b", "--url", "https://b.test"])
        result = runner.invoke(app, ["config", "set-default", "b"])
        assert result.exit_code == 0
        assert ConfigManager(config_path=cli_config.config_path).config.default_profile == "b"

    def test_remove_force(self, cli_config: ConfigManager):
        runner.invoke(app, ["config", "add", "a", "--url", "https://a.test"])
        result = runner.invoke(app, ["config", "remove", "a", "--force"])
        assert result.exit_code == 0
        assert cli_config.get_profile("a") is None

    def test_invalid_url(self, cli_config: ConfigManager):
        result = runner.invoke(app, ["config", "add", "bad", "--url", "panel.test"])
        assert result.exit_code == 1

    @respx.mock
    def test_connection_ok(self, cli_config: ConfigManager):
        runner.invoke(app, ["config", "add", "main", "--url", "https://panel.test", "--api-key", "ptla_x"])
        respx.get("https://panel.test/api/application/users").mock(
            return_value=httpx.Response(200, json={"data": []}),
        )
        result = runner.invoke(app, ["config", "test"])
        assert result.exit_code == 0
        assert "Connected" in result.output

    def test_no_profile_for_test(self, cli_config: ConfigManager):
        result = runner.invoke(app, ["config", "test"])
        assert result.exit_code == 6


class TestRenewalSettings:
    def test_show_defaults(self, cli_config: ConfigManager):
        result = runner.invoke(app, ["config", "renewal", "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["enabled"] is False

    def test_update(self, cli_config: ConfigManager):
        result = runner.invoke(app, [
            "config", "renewal", "--enabled", "--grace-period", "2", "--deletion-period", "0",
        ])
        assert result.exit_code == 0
        settings = ConfigManager(config_path=cli_config.config_path).config.renewal
        assert settings.enabled is True
        assert settings.grace_period == 2
        assert settings.deletion_period == 0
        assert settings.renewal_cost == 100

    def test_rejects_invalid_value(self, cli_config: ConfigManager):
        result = runner.invoke(app, ["config", "renewal", "--renewal-period", "0"])
        assert result.exit_code == 1
