"""
Application Configuration.

Pydantic Settings model for the Flight Login application.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Login policy ---
    MAX_FAILED_ATTEMPTS: int = 3
    LOCKOUT_DURATION_MS: int = 60_000  # 1 minute
    LOCKOUT_TICK_S: float = 1.0

    # --- Local storage ---
    LOCAL_DB_PATH: str = "flight_login_local.db"
    SECRET_SALT_PATH: str = "~/.flight_login_salt"
    SECRET_KDF_ITERATIONS: int = 600_000

    # --- Mock authenticator ---
    MOCK_AUTH_DELAY_S: float = 1.0
    MOCK_AUTH_USERNAME: str = "admin"
    MOCK_AUTH_PASSWORD: SecretStr = SecretStr("password123")

    # --- Connectivity probe ---
    CONNECTIVITY_PROBE_HOST: str = "1.1.1.1"
    CONNECTIVITY_PROBE_PORT: int = 53
    CONNECTIVITY_PROBE_TIMEOUT_S: float = 3.0
    CONNECTIVITY_POLL_INTERVAL_S: float = 5.0

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "flight_login.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_policy(self) -> "AppConfig":
        """Reject a lockout policy that could never engage or never expire,
        and warn when no ``.env`` file is present."""
        if self.MAX_FAILED_ATTEMPTS < 1:
            raise ValueError("MAX_FAILED_ATTEMPTS must be at least 1")
        if self.LOCKOUT_DURATION_MS <= 0:
            raise ValueError("LOCKOUT_DURATION_MS must be positive")
        if self.LOCKOUT_TICK_S <= 0:
            raise ValueError("LOCKOUT_TICK_S must be positive")

        if not Path(".env").exists():
            logging.getLogger("flight_login.config").warning(
                "No .env file found — all configuration loaded from "
                "environment variables or defaults."
            )
        return self

    @property
    def salt_path(self) -> Path:
        """``SECRET_SALT_PATH`` with ``~`` expanded."""
        return Path(self.SECRET_SALT_PATH).expanduser()


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern to avoid the lock overhead on the fast path while remaining
    thread-safe during first initialisation.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
