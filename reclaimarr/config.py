"""Application configuration models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExecutionMode(str, Enum):
    """Whether a run only reports or actually mutates the catalogs."""

    DRY_RUN = "dry-run"
    LIVE = "live"


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Reclaimarr", alias="APP_NAME")

    jellyfin_url: HttpUrl | None = Field(default=None, alias="JELLYFIN_URL")
    jellyfin_username: str | None = Field(default=None, alias="JELLYFIN_USERNAME")
    jellyfin_password: str | None = Field(default=None, alias="JELLYFIN_PASSWORD")

    sonarr_url: HttpUrl | None = Field(default=None, alias="SONARR_URL")
    sonarr_api_key: str | None = Field(default=None, alias="SONARR_API_KEY")

    radarr_url: HttpUrl | None = Field(default=None, alias="RADARR_URL")
    radarr_api_key: str | None = Field(default=None, alias="RADARR_API_KEY")

    age_threshold_days: int = Field(default=365, alias="AGE_THRESHOLD_DAYS", ge=0)
    dry_run: bool = Field(default=True, alias="DRY_RUN")

    request_timeout_seconds: float = Field(
        default=30.0, alias="REQUEST_TIMEOUT", gt=0
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    @field_validator(
        "jellyfin_username",
        "jellyfin_password",
        "sonarr_api_key",
        "radarr_api_key",
        mode="before",
    )
    @classmethod
    def _blank_as_missing(cls, value: object) -> object:
        """Treat empty credential strings as unset."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("jellyfin_url", "sonarr_url", "radarr_url", mode="before")
    @classmethod
    def _blank_url_as_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def jellyfin_configured(self) -> bool:
        return bool(
            self.jellyfin_url and self.jellyfin_username and self.jellyfin_password
        )

    @property
    def sonarr_configured(self) -> bool:
        return bool(self.sonarr_url and self.sonarr_api_key)

    @property
    def radarr_configured(self) -> bool:
        return bool(self.radarr_url and self.radarr_api_key)

    @property
    def execution_mode(self) -> ExecutionMode:
        """Return the execution mode implied by the dry-run flag."""

        return ExecutionMode.DRY_RUN if self.dry_run else ExecutionMode.LIVE

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


def base_url(url: HttpUrl | None) -> str:
    """Return a configured service URL without its trailing slash."""

    if url is None:
        raise ValueError("Service URL is not configured")
    return str(url).rstrip("/")


def get_settings(**overrides: Any) -> Settings:
    """Return settings with explicit overrides layered over the environment.

    Overrides are keyed by environment variable name; ``None`` values are
    ignored so unset command-line flags fall back to the environment.
    """

    provided = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**provided)  # type: ignore[arg-type]
