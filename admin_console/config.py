"""
Application Configuration.

Pydantic Settings model for the Admin Console.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import platform
import threading
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings

from admin_console import __version__


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Redirect targets ---
    # Public base URL of the console.  Used when the surface cannot
    # report the origin it is actually served from.
    SITE_URL: str = ""
    DEFAULT_SITE_URL: str = "http://localhost:5173"
    RESET_PASSWORD_PATH: str = "/reset-password"
    OAUTH_CALLBACK_PATH: str = "/auth/callback"
    SIGN_IN_PATH: str = "/"
    OAUTH_PROVIDER: str = "google"

    # --- Password policy ---
    MIN_PASSWORD_LENGTH: int = 6
    RESET_REDIRECT_DELAY_S: float = 2.0

    # --- Dashboards ---
    ADMIN_ACTIVITY_LIMIT: int = 50
    SUPERADMIN_ACTIVITY_LIMIT: int = 100

    # --- Activity log ---
    CLIENT_USER_AGENT: str = (
        f"admin-console/{__version__} ({platform.system() or 'unknown'})"
    )

    # --- Logging ---
    LOG_FILE: str = "admin_console.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so operators would otherwise only find out on the first sign-in.
        """
        _log = logging.getLogger("admin_console.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found: all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY.get_secret_value():
            _log.warning(
                "SUPABASE_URL / SUPABASE_ANON_KEY are empty: every "
                "authentication call will fail until they are set."
            )

        if not self.SITE_URL:
            _log.warning(
                "SITE_URL is empty: redirect links fall back to %s when "
                "no browser origin is available.",
                self.DEFAULT_SITE_URL,
            )

        return self

    @property
    def is_supabase_configured(self) -> bool:
        """``True`` when both the Supabase URL and anon key are set."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY.get_secret_value())


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern to avoid the lock overhead on the
    fast path while remaining thread-safe during first initialisation.

    Prefer direct constructor injection of ``AppConfig`` in new code;
    this factory exists for modules such as the logger that are created
    before the composition root runs.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton so the next ``get_config()`` re-reads env."""
    global _config_instance
    with _config_lock:
        _config_instance = None
