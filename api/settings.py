"""
Application settings using pydantic-settings for type-safe configuration.

All environment variables are centralized here with proper typing, validation,
and sensible defaults. Settings are loaded once at startup and cached.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from halaqah.clock import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development.
    Production values should be set via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars not defined here
        case_sensitive=False,  # Allow STORAGE_BACKEND or storage_backend
    )

    # === Storage ===
    storage_backend: str = Field(
        default="pocketbase",
        description="Record store: 'pocketbase' (production) or 'memory' (local development)",
    )
    skip_pb_auth: bool = Field(
        default=False,
        description="Skip PocketBase authentication on startup (for testing)",
    )

    # === PocketBase Configuration ===
    pocketbase_url: str = Field(
        default="http://127.0.0.1:8090",
        description="PocketBase server URL",
    )
    pocketbase_admin_email: str = Field(
        default="admin@halaqah.local",
        description="PocketBase admin email for API authentication",
    )
    pocketbase_admin_password: str = Field(
        default="",
        description="PocketBase admin password (required - no default for security)",
    )

    # === Operator Login ===
    operator_username: str = Field(
        default="admin",
        description="Username of the single administrative operator",
    )
    operator_password: str = Field(
        default="",
        description="Operator password; login is refused while empty",
    )

    @field_validator("pocketbase_admin_password", "operator_password", mode="after")
    @classmethod
    def warn_insecure_password(cls, v: str) -> str:
        """Warn (without failing) when a password is unset or trivially guessable."""
        insecure_defaults = {"password", "admin", "123456", ""}
        if v in insecure_defaults:
            logger.warning(
                "SECURITY WARNING: a password setting is not set or uses an insecure default. "
                "Set a strong password in your .env file for production use."
            )
        return v

    # === CORS Configuration ===
    # Note: Use str type for env var parsing, convert to list via property
    allowed_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS",
        description="Allowed CORS origins (comma-separated)",
    )

    # === System Settings ===
    tz: str = Field(
        default=DEFAULT_TIMEZONE,
        description="Timezone used for 'today' on membership and attendance dates",
    )

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins string into list."""
        return [origin.strip() for origin in self.allowed_origins_str.split(",") if origin.strip()]

    @field_validator("storage_backend", mode="after")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Validate and normalize storage_backend."""
        v = v.lower()
        if v not in ("pocketbase", "memory"):
            raise ValueError(f"Invalid STORAGE_BACKEND: {v}. Must be 'pocketbase' or 'memory'")
        return v

    @field_validator("tz", mode="after")
    @classmethod
    def validate_tz(cls, v: str) -> str:
        """Fall back to the default zone when TZ is not an IANA name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown TZ '{v}', using {DEFAULT_TIMEZONE}")
            return DEFAULT_TIMEZONE
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the application.
    Use this function to access settings throughout the codebase.
    """
    return Settings()
