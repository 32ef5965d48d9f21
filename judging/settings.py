"""
Client settings using pydantic-settings for type-safe configuration.

All environment variables are centralized here with proper typing, validation,
and sensible defaults. Settings are loaded once and cached.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class JudgingSettings(BaseSettings):
    """
    Client settings loaded from environment variables.

    Values can be set via ``JUDGING_*`` environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="JUDGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # === Server ===
    server_address: str = Field(
        default="http://127.0.0.1:5000",
        description="Base URL of the judging server",
    )
    request_timeout: float | None = Field(
        default=None,
        description="Per-request timeout in seconds; unset means requests may wait indefinitely",
    )

    # === Session ===
    username: str = Field(
        default="",
        description="Login name used by the command line client",
    )
    password: str = Field(
        default="",
        description="Password used by the command line client",
    )
    session_cookie_name: str = Field(
        default="session",
        description="Name of the cookie the server uses for the session token",
    )

    @field_validator("server_address", mode="after")
    @classmethod
    def validate_server_address(cls, v: str) -> str:
        """Require an http(s) URL and strip trailing slashes."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid server address: {v!r}. Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("request_timeout", mode="after")
    @classmethod
    def validate_request_timeout(cls, v: float | None) -> float | None:
        """Reject non-positive timeouts."""
        if v is not None and v <= 0:
            raise ValueError("request_timeout must be positive when set")
        return v


@lru_cache
def get_settings() -> JudgingSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the process.
    """
    return JudgingSettings()
