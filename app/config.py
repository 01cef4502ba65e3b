"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone name or UTC offset used for stored timestamps",
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser",
    )
    stream_webhook_secret: str | None = Field(
        default=None,
        description="Shared secret used to sign Stream Chat webhook deliveries",
    )
    stream_webhook_allow_unsigned: bool = Field(
        default=False,
        description="Accept unsigned webhooks when no secret is configured (development only)",
    )
    firebase_credentials_file: str | None = Field(
        default=None,
        description="Path to a Firebase service account JSON file",
    )
    firebase_credentials_json: str | None = Field(
        default=None,
        description="Inline Firebase service account JSON document",
    )
    firebase_project_id: str | None = Field(
        default=None,
        description="Firebase project identifier overriding the service account value",
    )
    notification_preview_length: int = Field(
        default=100,
        description="Maximum characters of a chat message kept in notification previews",
        gt=0,
    )
    missed_notifications_window_hours: int = Field(
        default=24,
        description="How far back missed notifications are replayed on reconnect",
        gt=0,
    )
    missed_notifications_limit: int = Field(
        default=10,
        description="Maximum number of missed notifications replayed on reconnect",
        gt=0,
    )

    @model_validator(mode="after")
    def _validate_firebase_credentials(self) -> "Settings":
        if self.firebase_credentials_file and self.firebase_credentials_json:
            raise ValueError(
                "FIREBASE_CREDENTIALS_FILE and FIREBASE_CREDENTIALS_JSON are mutually exclusive"
            )
        return self

    @property
    def push_enabled(self) -> bool:
        """Return ``True`` when Firebase credentials were provided."""

        return bool(self.firebase_credentials_file or self.firebase_credentials_json)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
