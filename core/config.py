"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for NoteVault happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. The
      instance is built at startup and treated as read-only afterwards; the
      lifespan hands it to the components that need it.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies on
  key entropy -- a short key weakens every issued session token.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a hard
  startup failure. Dev mode generates a throwaway key with a warning.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, notes/, or payments/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("notevault.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'notevault.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL
    address: str = "127.0.0.1"
    port: int = 8080

    # Fixed-size pool of threads that run blocking store calls.
    worker_pool_size: int = 5

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    # Token TTL and cookie TTL are configured independently.
    token_expire_seconds: int = 24 * 3600
    cookie_expire_seconds: int = 24 * 3600
    secure_cookies: bool = False
    # When true, protected routes need the "token" cookie in addition to the
    # Authorization header, and both must carry the same JWT.
    require_cookie_token: bool = True

    # bcrypt cost factor. Values outside 4..31 make hashing fail loudly.
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Two-factor authentication
    # ------------------------------------------------------------------

    otp_issuer: str = "NoteAPI"
    # Number of 30s steps accepted on either side of the current one.
    # 1 tolerates one step of clock drift between server and authenticator.
    otp_valid_window: int = 1

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # MoonPay (payments proxy)
    # ------------------------------------------------------------------

    moonpay_api_key: str = ""
    moonpay_base_url: str = "https://api.moonpay.com"
    moonpay_timeout_seconds: int = 10

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated SECRET_KEY. " "Sessions will not persist across restarts."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
