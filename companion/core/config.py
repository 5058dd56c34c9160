"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the credential services
and the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


YOUTUBE_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/youtube.readonly",
    "https://www.googleapis.com/auth/youtube.force-ssl",
    "openid",
    "email",
    "profile",
)


class GoogleSettings(BaseSettings):
    """Configuration required for interacting with Google APIs."""

    client_id: str = Field(..., validation_alias="GOOGLE_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="GOOGLE_REDIRECT_URI")


class OAuthSettings(BaseSettings):
    """OAuth flow and token lifecycle configuration."""

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        YOUTUBE_SCOPES,
        validation_alias="OAUTH_SCOPES",
    )
    refresh_buffer_seconds: int = Field(
        300,
        validation_alias="TOKEN_REFRESH_BUFFER_SECONDS",
        description="Lead time before expiry at which access tokens are refreshed.",
    )
    provider_timeout_seconds: float = Field(
        10.0,
        validation_alias="PROVIDER_TIMEOUT_SECONDS",
        description="Upper bound for every outbound Google call.",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())


class SecuritySettings(BaseSettings):
    """Secrets used for token encryption and session signing."""

    encryption_key: Optional[str] = Field(
        None,
        validation_alias="ENCRYPTION_KEY",
        description="64-character hex string (32 bytes) for AES-256-GCM.",
    )
    jwt_secret: Optional[str] = Field(
        None,
        validation_alias="JWT_SECRET",
        description="HMAC secret used to sign session tokens.",
    )
    jwt_expires_in_seconds: int = Field(
        7 * 24 * 60 * 60,
        validation_alias="JWT_EXPIRES_IN_SECONDS",
    )


class GeminiSettings(BaseSettings):
    """Configuration for Gemini model access."""

    api_key: Optional[str] = Field(None, validation_alias="GEMINI_API_KEY")
    model_name: str = Field("gemini-1.5-flash", validation_alias="GEMINI_MODEL_NAME")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    host: str = Field("127.0.0.1", validation_alias="APP_HOST")
    port: int = Field(8000, validation_alias="APP_PORT")
    database_path: str = Field(
        "data/companion.sqlite3",
        validation_alias="DATABASE_PATH",
    )
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        validation_alias="FRONTEND_BASE_URL",
        description="Optional URL for redirecting users back to the front-end.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GeminiSettings",
    "GoogleSettings",
    "OAuthSettings",
    "SecuritySettings",
    "YOUTUBE_SCOPES",
    "get_settings",
]
