"""
core/config.py -- Every tunable of the Gatehouse service, read once from the environment.

Nothing else in the tree touches os.environ. Modules ask get_settings() for
the process-wide Settings object, which pydantic-settings populates from
environment variables (SECRET_KEY, DATABASE_URL, ...) and an optional .env
file, coercing and validating types on the way in.

Signing key policy (enforced by Settings.validate_secret_key):
  DEBUG=true   -- a missing SECRET_KEY is replaced by a random one and a
                  warning is logged. Issued tokens die with the process.
  DEBUG=false  -- a missing SECRET_KEY stops startup.
  Either mode  -- keys under 32 characters are refused, since every session
                  token's HMAC is only as strong as this key.

The bootstrap admin defaults (admin@example.com / admin123) are public
knowledge. Override ADMIN_PASSWORD, or change it after the first login, in
any deployment that is reachable by anyone but you.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or client/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("gatehouse.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'gatehouse_auth.db'}"


class Settings(BaseSettings):
    """Service configuration. Field names map to upper-case env vars.

    Every field has a default, so Settings() builds with an empty
    environment (DEBUG=true still needed for the signing key).
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
    # "" means unset. validate_secret_key replaces it or refuses to start.
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Session tokens live for 24 hours; there is no refresh flow.
    token_expire_seconds: int = 24 * 60 * 60
    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # Bootstrap admin (created at startup when no admin exists)
    # ------------------------------------------------------------------

    admin_name: str = "Admin"
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        """bcrypt accepts log2 cost factors between 4 and 31 inclusive."""
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return value

    @field_validator("token_expire_seconds")
    @classmethod
    def validate_token_lifetime(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return value

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Apply the signing key policy described in the module docstring.

        Refusing to start in production matters because a random per-process
        key would log every user out on each restart without any error.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("SECRET_KEY not set; generated a throwaway key. Tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required when DEBUG is off. "
                    "Set it in the environment or .env, or set DEBUG=true for local development."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Build Settings on first use and hand back the same object afterwards.

    Tests that change the environment after import must call
    get_settings.cache_clear() for the change to be seen.
    """
    return Settings()
