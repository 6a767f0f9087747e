"""
Application Configuration

Centralized configuration using Pydantic Settings for type-safe
environment variable management with validation.

Settings are read once and reused for the lifetime of the process;
each request works on the same read-only snapshot.
"""

import math
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.logger import get_logger

logger = get_logger(__name__)

# Get the directory containing this file, then go up to the project root
_CONFIG_DIR = Path(__file__).parent.parent.parent

# Fallback secret, only honoured when ALLOW_DEFAULT_SECRET is enabled
DEFAULT_HMAC_SECRET = "default-secret"
DEFAULT_TOKEN_VALIDITY_SECONDS = 300000.0


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Example: HMAC_SECRET=change-me or hmac_secret=change-me
    """

    model_config = SettingsConfigDict(
        env_file=_CONFIG_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Token Verification
    hmac_secret: str | None = None  # Shared with the token issuer
    allow_default_secret: bool = False
    token_validity_seconds: float = DEFAULT_TOKEN_VALIDITY_SECONDS

    # Query / header names shared with the token issuer
    function_id_param: str = "function_id"
    login_function_id: str = "APPS_LOGIN_DEFAULT"
    token_param: str = "oait"
    token_layout: Literal["auto", "application_first", "proof_first"] = "auto"
    client_ip_header: str = "CF-Connecting-IP"
    forwarded_for_header: str = "X-Forwarded-For"
    fallback_client_ip: str = "127.0.0.1"
    access_cookie_name: str = "CF_Authorization"

    # Origin Configuration
    origin_url: str = "http://127.0.0.1:8081"
    origin_timeout_seconds: float = 30.0

    # Server Configuration
    server_host: str = "0.0.0.0"
    server_port: int = 8080
    debug: bool = False

    @field_validator("token_validity_seconds", mode="before")
    @classmethod
    def _parse_validity(cls, value: Any) -> Any:
        """Fall back to the default window unless the override is a finite number."""
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            seconds = math.nan

        # nan and inf would disable expiry
        if not math.isfinite(seconds):
            logger.warning(
                f"Invalid TOKEN_VALIDITY_SECONDS={value!r}, using default {DEFAULT_TOKEN_VALIDITY_SECONDS}"
            )
            return DEFAULT_TOKEN_VALIDITY_SECONDS
        return seconds

    def resolve_secret(self) -> str:
        """
        Return the HMAC secret to verify against.

        An unset secret resolves to the built-in default only when
        ``allow_default_secret`` is enabled. Otherwise, and for an explicitly
        empty secret, an empty string is returned and callers must fail closed.
        """
        if self.hmac_secret is not None:
            return self.hmac_secret
        if self.allow_default_secret:
            logger.warning("No HMAC_SECRET set. Using built-in default secret (not suitable for production)")
            return DEFAULT_HMAC_SECRET
        return ""


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once
    and reused throughout the application lifecycle.
    """
    return Settings()
