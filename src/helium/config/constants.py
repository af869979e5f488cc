"""Default paths, environment variable names, and constants."""

from __future__ import annotations

import platformdirs

APP_NAME = "helium"
APP_AUTHOR = "Helium"

CONFIG_DIR = platformdirs.user_config_path(APP_NAME, APP_AUTHOR)
CONFIG_FILE = CONFIG_DIR / "config.toml"
DATA_DIR = platformdirs.user_data_path(APP_NAME, APP_AUTHOR)
DEFAULT_DATABASE_URL = f"sqlite:///{DATA_DIR / 'helium.db'}"

# Environment variable names
ENV_PANEL_URL = "HELIUM_PANEL_URL"
ENV_API_KEY = "HELIUM_API_KEY"
ENV_PROFILE = "HELIUM_PROFILE"
ENV_DATABASE_URL = "HELIUM_DATABASE_URL"

# Panel API defaults
APPLICATION_API_BASE = "/api/application"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_CACHE_TTL = 60

# Sweeper
SWEEP_INTERVAL_SECONDS = 60 * 60
EXPIRING_SOON_MS = 3 * 24 * 60 * 60 * 1000
DAY_MS = 24 * 60 * 60 * 1000

# Notifier
DEFAULT_NOTIFIER_USERNAME = "Helium Notifications"
WEBHOOK_MAX_RETRIES = 3
WEBHOOK_BASE_DELAY_MS = 1000
