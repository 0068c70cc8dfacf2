"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./nerbabo.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement emitted by the engine",
    )
    app_timezone: str = Field(
        default="Europe/Lisbon",
        description="IANA timezone (or UTC offset) used for persisted timestamps",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level configured when the API starts",
    )
    people_url_template: str = Field(
        default="/people/{person_id}",
        description="Deep link used by notifications that concern a person",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unsupported log level '{value}'")
        return level

    @field_validator("people_url_template")
    @classmethod
    def _validate_people_url_template(cls, value: str) -> str:
        if "{person_id}" not in value:
            raise ValueError("PEOPLE_URL_TEMPLATE must contain the '{person_id}' placeholder")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
