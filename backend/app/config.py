"""Application configuration using Pydantic Settings.

All settings are loaded from environment variables or .env file.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CORS_ALLOW_METHODS = ["POST", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type"]


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="KEYCHECK_",
    )

    # Application
    app_name: str = "AI Key Checker"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # CORS - browser front end may be hosted anywhere
    cors_origins: list[str] = Field(default=["*"])

    # Key validation
    validation_timeout: float = Field(default=5.0, gt=0)  # seconds, per key
    anthropic_version: str = "2023-06-01"
    anthropic_validation_model: str = "claude-3-haiku-20240307"

    # Prometheus
    metrics_enabled: bool = True

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        return v.lower()

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def cors_headers(self) -> dict[str, str]:
        """CORS headers for responses produced outside the CORS middleware."""
        headers = {
            "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
            "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
        }
        if "*" in self.cors_origins:
            headers["Access-Control-Allow-Origin"] = "*"
        return headers


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
