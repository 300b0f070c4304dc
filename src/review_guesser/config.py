"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation,
type coercion, and sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PARTITIONS = [f"Batch_{n}.csv" for n in range(1, 7)]


class CatalogConfig(BaseSettings):
    """Where catalog partitions are fetched from."""

    model_config = SettingsConfigDict(env_prefix="CATALOG_")

    base_url: str | None = Field(
        default=None,
        description="Base URL serving partition files; local files are used when unset",
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding partition files for the local source",
    )
    full_catalog: str = Field(
        default="released_appids.csv",
        description="Partition holding every released app id",
    )
    partitions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PARTITIONS),
        description="Balanced partitions tried first by smart selection",
    )
    timeout_seconds: int = Field(
        default=30,
        ge=1,
        le=120,
        description="HTTP request timeout in seconds",
    )

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, v: str | None) -> str | None:
        """Strip trailing slashes so partition names join cleanly."""
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None


class StorageConfig(BaseSettings):
    """Seen-state persistence configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    path: Path = Field(
        default=Path(".review_guesser"),
        description="Directory for the durable key-value store",
    )
    seen_key: str = Field(
        default="reviewGuesser_seenGames",
        min_length=1,
        description="Storage key of the seen-games blob",
    )


class SelectionConfig(BaseSettings):
    """Random selection configuration."""

    model_config = SettingsConfigDict(env_prefix="SELECTION_")

    fallback_app_id: int = Field(
        default=570,
        gt=0,
        description="App id handed out when every candidate has been seen",
    )
    store_url_template: str = Field(
        default="https://store.steampowered.com/app/{app_id}/",
        description="Store page URL, formatted with the chosen app id",
    )

    @field_validator("store_url_template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """Require the app id placeholder."""
        if "{app_id}" not in v:
            raise ValueError(f"Store URL template must contain {{app_id}}: {v}")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )
    include_timestamp: bool = Field(
        default=True,
        description="Include timestamp in log entries",
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides
    a single entry point for configuration access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    # Sub-configurations
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
