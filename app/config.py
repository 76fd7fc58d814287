"""
Configuration management using Pydantic settings.
Handles database URL, JWT secrets, media storage, currency rates and logging.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from the environment or a .env file."""

    # Application configuration
    app_name: str = "Property Marketplace API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database configuration
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/property_marketplace"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # JWT configuration
    jwt_secret_key: str = "change-me-in-production-please-0123456789"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    jwt_refresh_token_expire_days: int = 7

    # Media storage (local stand-in for the object storage bucket)
    media_dir: str = "./media"
    media_url: str = "/media"
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    allowed_file_types: List[str] = ["image/jpeg", "image/png", "image/webp"]
    min_image_width: int = 100
    min_image_height: int = 100

    # Listing rules
    min_listing_images: int = 3
    featured_limit: int = 6

    # Pagination defaults
    default_page_size: int = 20
    max_page_size: int = 100

    # Currency rates
    base_currency: str = "GHS"
    currency_rates_url: str = "https://api.exchangerate-api.com/v4/latest/GHS"
    currency_rates_timeout: float = 5.0
    currency_rates_ttl_seconds: int = 3600

    # Error reporting
    error_log_size: int = 100

    # API configuration
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("base_currency")
    @classmethod
    def validate_base_currency(cls, v):
        return v.upper()

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


settings = get_settings()
