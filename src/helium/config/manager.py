"""Configuration manager: read/write TOML config, resolve profiles."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import tomli_w

from helium.client.errors import ConfigurationError
from helium.config.constants import (
    CONFIG_FILE,
    DATA_DIR,
    DEFAULT_DATABASE_URL,
    ENV_API_KEY,
    ENV_DATABASE_URL,
    ENV_PANEL_URL,
    ENV_PROFILE,
)
from helium.config.models import (
    RENEWAL_MUTABLE_FIELDS,
    HeliumConfig,
    NotifierSettings,
    PanelProfile,
    RenewalSettings,
)

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib


class ConfigManager:
    """Manages Helium configuration on disk and resolves panel profiles."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path or CONFIG_FILE
        self._config: HeliumConfig | None = None

    @property
    def config(self) -> HeliumConfig:
        if self._config is None:
            self._config = self._load()
        return self._config

    def _load(self) -> HeliumConfig:
        if not self.config_path.exists():
            return HeliumConfig()
        raw = self.config_path.read_bytes()
        data = tomllib.loads(raw.decode())
        profiles: dict[str, PanelProfile] = {}
        for name, prof_data in data.get("profiles", {}).items():
            profiles[name] = PanelProfile(name=name, **prof_data)
        return HeliumConfig(
            default_profile=data.get("default_profile"),
            default_format=data.get("default_format", "table"),
            database_url=data.get("database_url"),
            profiles=profiles,
            renewal=RenewalSettings(**data.get("renewal", {})),
            notifier=NotifierSettings(**data.get("notifier", {})),
        )

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        # Owner-only: the file holds panel API keys
        os.chmod(self.config_path.parent, 0o700)
        data: dict[str, Any] = {}
        if self.config.default_profile:
            data["default_profile"] = self.config.default_profile
        if self.config.default_format != "table":
            data["default_format"] = self.config.default_format
        if self.config.database_url:
            data["database_url"] = self.config.database_url
        if self.config.profiles:
            data["profiles"] = {}
            for name, profile in self.config.profiles.items():
                defaults = PanelProfile(name=name, url=profile.url)
                prof_dict = profile.model_dump(exclude={"name"}, exclude_none=True)
                # Remove defaults to keep config clean
                for key in ("verify_ssl", "timeout", "max_retries", "retry_delay", "cache_ttl"):
                    if prof_dict.get(key) == getattr(defaults, key):
                        del prof_dict[key]
                data["profiles"][name] = prof_dict
        data["renewal"] = self.config.renewal.model_dump()
        data["notifier"] = self.config.notifier.model_dump()
        # Atomic write: write to temp file, then rename
        temp = self.config_path.with_suffix(".tmp")
        fd = os.open(str(temp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            os.write(fd, tomli_w.dumps(data).encode())
        finally:
            os.close(fd)
        temp.replace(self.config_path)

    def add_profile(self, profile: PanelProfile) -> None:
        self.config.profiles[profile.name] = profile
        if not self.config.default_profile:
            self.config.default_profile = profile.name
        self.save()

    def remove_profile(self, name: str) -> bool:
        if name not in self.config.profiles:
            return False
        del self.config.profiles[name]
        if self.config.default_profile == name:
            self.config.default_profile = next(iter(self.config.profiles), None)
        self.save()
        return True

    def set_default(self, name: str) -> bool:
        if name not in self.config.profiles:
            return False
        self.config.default_profile = name
        self.save()
        return True

    def get_profile(self, name: str | None = None) -> PanelProfile | None:
        if name:
            return self.config.profiles.get(name)
        default = self.config.default_profile
        if default:
            return self.config.profiles.get(default)
        return None

    def update_renewal(self, **changes: Any) -> RenewalSettings:
        """Apply *changes* to the renewal settings and persist them.

        Only known ``RenewalSettings`` fields are accepted; ``None`` values
        are skipped so CLI options that were not passed leave the field alone.
        """
        unknown = set(changes) - RENEWAL_MUTABLE_FIELDS
        if unknown:
            raise ConfigurationError(
                f"Unknown renewal setting(s): {', '.join(sorted(unknown))}"
            )
        merged = self.config.renewal.model_dump()
        merged.update({k: v for k, v in changes.items() if v is not None})
        self.config.renewal = RenewalSettings(**merged)
        self.save()
        return self.config.renewal

    def resolve_panel(
        self,
        profile_name: str | None = None,
        url: str | None = None,
        api_key: str | None = None,
    ) -> PanelProfile:
        """Resolve the panel connection.

        Precedence: CLI flags > env vars > config profile.
        """
        env_profile = os.environ.get(ENV_PROFILE)
        profile = self.get_profile(profile_name or env_profile)

        env_url = os.environ.get(ENV_PANEL_URL)
        env_key = os.environ.get(ENV_API_KEY)

        resolved_url = url or env_url or (profile.url if profile else None)
        resolved_key = api_key or env_key or (profile.api_key if profile else None)

        if not resolved_url:
            raise ConfigurationError(
                "No panel URL configured. Use 'helium config add' or set "
                f"{ENV_PANEL_URL} or pass --url."
            )

        if profile:
            return profile.model_copy(
                update={"url": resolved_url.rstrip("/"), "api_key": resolved_key},
            )
        return PanelProfile(name="cli", url=resolved_url.rstrip("/"), api_key=resolved_key)

    def resolve_database_url(self, database_url: str | None = None) -> str:
        """Precedence: CLI flag > env var > config > default SQLite file."""
        resolved = (
            database_url
            or os.environ.get(ENV_DATABASE_URL)
            or self.config.database_url
        )
        if resolved:
            return resolved
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_DATABASE_URL
