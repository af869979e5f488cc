"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from helium.config.manager import ConfigManager
from helium.config.models import PanelProfile, RenewalSettings
from helium.store.database import create_session_factory
from helium.store.repositories import (
    AccountRepository,
    TrackedServerRepository,
    WebhookRepository,
)

PANEL = "https://panel.test"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HELIUM_PANEL_URL", "HELIUM_API_KEY", "HELIUM_PROFILE", "HELIUM_DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    return tmp_path / "config.toml"


@pytest.fixture
def config_manager(tmp_config: Path) -> ConfigManager:
    return ConfigManager(config_path=tmp_config)


@pytest.fixture
def sample_profile() -> PanelProfile:
    return PanelProfile(name="test-panel", url=PANEL, api_key="ptla_testkey123")


@pytest.fixture
def fast_profile() -> PanelProfile:
    """Profile with a small backoff unit and a 60s cache."""
    return PanelProfile(
        name="fast", url=PANEL, api_key="ptla_testkey123",
        max_retries=3, retry_delay=100, cache_ttl=60,
    )


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def renewal_settings() -> RenewalSettings:
    return RenewalSettings(
        enabled=True,
        renewal_period=7,
        grace_period=1,
        deletion_period=7,
        renewal_cost=100,
        auto_suspend=True,
        auto_renewal=True,
    )


@pytest.fixture
def db_session() -> Iterator[Session]:
    session = create_session_factory("sqlite://")()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def servers(db_session: Session) -> TrackedServerRepository:
    return TrackedServerRepository(db_session)


@pytest.fixture
def accounts(db_session: Session) -> AccountRepository:
    return AccountRepository(db_session)


@pytest.fixture
def webhooks(db_session: Session) -> WebhookRepository:
    return WebhookRepository(db_session)


def _server_envelope(server_id: int = 1, name: str = "mc-1", user: int = 4, **extra) -> dict:
    attributes = {
        "id": server_id,
        "uuid": f"uuid-{server_id}",
        "identifier": f"id{server_id}",
        "name": name,
        "description": "",
        "user": user,
        "node": 1,
        "allocation": 10,
        "suspended": False,
        "limits": {"memory": 1024, "swap": 0, "disk": 5120, "io": 500, "cpu": 100},
        "feature_limits": {"databases": 0, "backups": 0, "allocations": 1},
    }
    attributes.update(extra)
    return {"object": "server", "attributes": attributes}


def _list_envelope(items: list[dict], page: int = 1, total_pages: int = 1) -> dict:
    return {
        "object": "list",
        "data": items,
        "meta": {
            "pagination": {
                "total": len(items),
                "count": len(items),
                "per_page": 50,
                "current_page": page,
                "total_pages": total_pages,
            }
        },
    }


@pytest.fixture
def server_payload():
    """Factory for ``{"object": "server", "attributes": ...}`` envelopes."""
    return _server_envelope


@pytest.fixture
def list_payload():
    """Factory for paginated list envelopes."""
    return _list_envelope


@pytest.fixture
def cli_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[ConfigManager]:
    """Point every CLI command at a temp config file and a temp SQLite database."""
    manager = ConfigManager(config_path=tmp_path / "config.toml")
    monkeypatch.setenv("HELIUM_DATABASE_URL", f"sqlite:///{tmp_path / 'helium.db'}")
    with patch("helium.commands._common.ConfigManager", return_value=manager):
        yield manager


@pytest.fixture
def cli_db(cli_config: ConfigManager) -> Iterator[Session]:
    """A session on the database the CLI commands use."""
    session = create_session_factory(cli_config.resolve_database_url())()
    try:
        yield session
    finally:
        session.close()
