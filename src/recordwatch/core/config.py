"""Configuration management for recordwatch.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once and is
immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RECORDWATCH_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "recordwatch"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"

    # Scheduler Settings
    tick_interval_ms: int = Field(
        default=17,
        description="Milliseconds between two snapshot passes over the observed records",
    )

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("tick_interval_ms")
    @classmethod
    def validate_tick_interval(cls, v: int) -> int:
        """Keep the tick interval within one millisecond and one minute."""
        if v < 1 or v > 60_000:
            raise ValueError(
                f"tick_interval_ms must be between 1 and 60000, got {v}"
            )
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def tick_interval(self) -> float:
        """Tick interval in seconds, as expected by the event loop."""
        return self.tick_interval_ms / 1000

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()
