"""
Configuration management using Pydantic settings.
Handles database URL, token signing, cookie policy and image limits.
"""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path
from functools import lru_cache


DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from the environment or a .env file."""

    # Application configuration
    app_name: str = "Estate Listing API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database configuration
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/estate_listings"

    # Token configuration
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_days: int = 7

    # Cookie carrying the identity token
    auth_cookie_name: str = "access_token"
    auth_cookie_secure: bool = False

    # Listing image policy
    max_listing_images: int = 6
    upload_timeout_seconds: float = 30.0

    # Staged uploads (private) and published media (served at public_media_url)
    upload_dir: str = "./uploads"
    staging_dir: str = "./staging"
    public_media_url: str = "/media"
    staging_max_age_hours: int = 24
    max_file_size: int = 2 * 1024 * 1024  # 2MB
    allowed_file_types: List[str] = ["image/jpeg", "image/png", "image/webp"]

    # API configuration
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 3000

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("max_listing_images")
    @classmethod
    def validate_max_listing_images(cls, v):
        if v < 1:
            raise ValueError("MAX_LISTING_IMAGES must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_jwt_secret_key(self):
        """Validate JWT secret key strength outside local environments."""
        if not self.jwt_secret_key:
            raise ValueError("JWT_SECRET_KEY is required")
        if self.environment in ("staging", "production") and (
            self.jwt_secret_key == DEFAULT_JWT_SECRET or len(self.jwt_secret_key) < 32
        ):
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return self

    @model_validator(mode="after")
    def validate_staging_dir(self):
        """Staged uploads must never sit under the publicly served media directory."""
        staging = Path(self.staging_dir).resolve()
        media = Path(self.upload_dir).resolve()
        if staging == media or media in staging.parents:
            raise ValueError("STAGING_DIR must be outside UPLOAD_DIR")
        return self

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


# Global settings instance
settings = get_settings()
