"""QuestKeeper settings.

Each concern gets its own pydantic-settings class; `Settings` nests them.
Values come from keyword overrides, then `QUESTKEEPER_*` environment
variables, then `.env`. The OpenRouter key is a SecretStr and never logged.

Example:
    >>> from questkeeper.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.store.base_hit_points
    10

Environment Variables:
    QUESTKEEPER_OPENROUTER_API_KEY: OpenRouter API key for AI suggestions
    QUESTKEEPER_BACKEND: Backing store ("sqlite" or "memory")
    QUESTKEEPER_DATABASE_PATH: Path to the SQLite key/value database
    QUESTKEEPER_STORE_BASE_HIT_POINTS: Base HP for derived hit points
    QUESTKEEPER_STORE_CASCADE_CAMPAIGN_DELETE: Delete notes with their campaign
    QUESTKEEPER_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from questkeeper.core.constants import DEFAULT_BASE_HIT_POINTS
from questkeeper.core.exceptions import ConfigurationError


def _env_config(prefix: str, **extra: str) -> SettingsConfigDict:
    """Settings read from the environment and a UTF-8 `.env` file under `prefix`."""
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        **extra,
    )


class AIProviderSettings(BaseSettings):
    """OpenRouter connection used for character and quest suggestions.

    Attributes:
        openrouter_api_key: OpenRouter API key.
        base_url: OpenAI-compatible endpoint.
        model: Model identifier used for suggestions.
        temperature: Sampling temperature for generated flavor text.
        max_retries: Maximum number of API retry attempts.
        timeout_seconds: API request timeout in seconds.
    """

    model_config = _env_config("QUESTKEEPER_")

    openrouter_api_key: SecretStr | None = Field(
        default=None,
        description="OpenRouter API key",
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI-compatible API endpoint",
    )
    model: str = Field(
        default="google/gemini-2.5-flash",
        description="Model used for character and quest suggestions",
    )
    temperature: float = Field(
        default=0.9,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum API attempts",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=300,
        description="API request timeout",
    )


class StorageSettings(BaseSettings):
    """Where the entity collections are persisted.

    Attributes:
        backend: Backing store implementation.
        database_path: Path to the SQLite key/value database file.
    """

    model_config = _env_config("QUESTKEEPER_")

    backend: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description="Backing store implementation",
    )
    database_path: Path = Field(
        default=Path("data/questkeeper.db"),
        description="Path to SQLite database",
    )

    @field_validator("database_path", mode="after")
    @classmethod
    def validate_database_path(cls, value: Path) -> Path:
        """The database path must name a file, not an existing directory."""
        if value.is_dir():
            raise ConfigurationError(
                f"database_path must be a file, got directory {value}",
                config_key="database_path",
            )
        return value


class StoreSettings(BaseSettings):
    """Tunables for the in-memory entity store.

    Attributes:
        base_hit_points: Base HP fed to the hit point derivation.
        cascade_campaign_delete: Delete a campaign's notes along with it.
    """

    model_config = _env_config("QUESTKEEPER_STORE_")

    base_hit_points: int = Field(
        default=DEFAULT_BASE_HIT_POINTS,
        ge=1,
        le=100,
        description="Base hit points for derived HP",
    )
    cascade_campaign_delete: bool = Field(
        default=False,
        description="Delete a campaign's notes when the campaign is deleted",
    )


class Settings(BaseSettings):
    """Top-level settings with one nested block per concern.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        ai: AI provider settings.
        storage: Backing store settings.
        store: Entity store settings.
    """

    model_config = _env_config("QUESTKEEPER_", env_nested_delimiter="__")

    app_name: str = Field(
        default="QuestKeeper",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)

    @property
    def is_production(self) -> bool:
        """Production is any run without `debug`; logs are JSON there."""
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process.

    Raises:
        ConfigurationError: If a value is missing or fails validation.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "StorageSettings",
    "StoreSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
