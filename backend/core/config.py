"""
Configuration management for the admin backend.

Settings are read from environment variables (and an optional .env file)
and validated once at import time.
"""

import json
from functools import lru_cache
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Database Configuration
    database_url: str = "sqlite:///./mito_admin.db"
    log_sql_queries: bool = False
    slow_query_threshold_seconds: float = 1.0

    # Environment Settings
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # API
    # Comma-separated in the environment
    cors_origins: Annotated[List[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:5000",
    ]
    seed_demo_data: bool = False

    # Credits
    default_credit_currency: str = "GBP"
    credit_expiry_days: int = 90  # every awarded credit expires this many days out

    # Promo codes
    promo_code_length: int = 8
    promo_bulk_max_batch: int = 1000

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("credit_expiry_days", "promo_code_length", "promo_bulk_max_batch")
    @classmethod
    def must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance with environment variables loaded
    """
    return Settings()


settings = get_settings()


def validate_production_config():
    """Validate configuration for production deployment."""
    if settings.is_production:
        issues = []

        if settings.debug:
            issues.append("DEBUG is enabled in production")

        if settings.seed_demo_data:
            issues.append("SEED_DEMO_DATA is enabled in production")

        if issues:
            raise ValueError(f"Production configuration issues detected: {', '.join(issues)}")


if settings.is_production:
    validate_production_config()
