"""Application settings and configuration."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AIRCOMPANION_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "aircompanion"
    env: str = "development"

    # Local state database
    database_url: str = Field(
        default="sqlite:///./aircompanion.db",
        description="Database URL for the local key-value state store",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements (debugging only)",
    )

    # Air credits
    daily_credit_allowance: int = Field(
        default=24,
        gt=0,
        description="Credits granted at the first load of each calendar day",
    )
    route_search_cost: int = Field(
        default=12,
        ge=0,
        description="Credits charged for one route search",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log output format",
    )


# Global settings instance
settings = Settings()
