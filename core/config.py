"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the admin panel happen here. No module
should call os.getenv() directly -- import get_settings() instead.

  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): field names map to env var names
      (secret_key -> SECRET_KEY, app_env -> APP_ENV). An optional .env file
      is read as well.

  @model_validator(mode="after"): outside production a missing SECRET_KEY
      is generated with a warning; in production startup is refused.

Layer rule: core/ is the kernel. This module may not import from api/, web/
or auth/.
"""

import logging
import secrets
from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("adminpanel.config")

SEVEN_DAYS = 60 * 60 * 24 * 7


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field has a default so Settings() can be built in tests without a
    real .env file, as long as APP_ENV is not "production".
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    app_env: Literal["development", "test", "production"] = "production"
    # Empty string is the "not configured" sentinel; see validator below.
    secret_key: str = ""
    database_url: str = "sqlite:///adminpanel.db"

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_max_age: int = SEVEN_DAYS

    # ------------------------------------------------------------------
    # Seed administrator (manage.py seed)
    # ------------------------------------------------------------------

    seed_admin_email: str = "admin@example.com"
    seed_admin_password: str = "admin123"
    seed_admin_name: str = "Admin User"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def secure_cookies(self) -> bool:
        """Session cookies get the Secure attribute only in production."""
        return self.is_production

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        development / test: auto-generate a random key with a warning.
            Sessions will not survive a restart.
        production: refuse to start without a key, since every restart would
            silently log all users out.
        Keys shorter than 32 characters are rejected in every mode.
        """
        if not self.secret_key:
            if not self.is_production:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file, "
                    "or set APP_ENV=development for local work."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() if you need to inject different
    environment variables.
    """
    return Settings()
