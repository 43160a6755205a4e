"""
Configuration management module for Evently.

This module provides centralized configuration management using pydantic-settings
for loading and validating environment variables from .env file.
"""

from functools import lru_cache
from typing import Optional, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every parameter has a development default except JWT_SECRET, whose absence
    is reported as a server configuration error when a token is issued or
    verified.
    """

    # Application Settings
    APP_NAME: str = "Evently"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    API_PREFIX: str = "/api"

    # Database - PostgreSQL (DATABASE_URL overrides the individual parts)
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = "evently"
    POSTGRES_PASSWORD: str = "evently"
    POSTGRES_DB: str = "evently"
    POSTGRES_HOST: str = "db"
    POSTGRES_PORT: int = 5432

    # Connection pool: callers beyond size + overflow wait at most DB_POOL_TIMEOUT seconds
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_RECYCLE: int = 1800

    # Cache
    CACHE_BACKEND: str = Field(default="memory", description="memory or redis")
    CACHE_MAX_ENTRIES: int = 10000
    CACHE_DEFAULT_TTL: int = 300

    # Redis (used when CACHE_BACKEND=redis)
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # Authentication
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: str = "20/minute"

    # CORS Configuration
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # Uploaded images
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("DB_POOL_SIZE", "CACHE_MAX_ENTRIES", "JWT_EXPIRE_MINUTES")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate that sizes and durations are positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("DB_MAX_OVERFLOW")
    @classmethod
    def validate_overflow(cls, v: int) -> int:
        if v < 0:
            raise ValueError("DB_MAX_OVERFLOW cannot be negative")
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        """bcrypt accepts cost factors between 4 and 31."""
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @field_validator("CACHE_BACKEND")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("memory", "redis"):
            raise ValueError("CACHE_BACKEND must be 'memory' or 'redis'")
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def database_url(self) -> str:
        """
        Construct the relational store connection URL.

        Returns:
            str: SQLAlchemy-compatible database URL
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        """
        Construct Redis connection URL.

        Returns:
            str: Redis connection URL
        """
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    def get_cors_origins(self) -> List[str]:
        """
        Get list of allowed CORS origins from comma-separated string.

        Returns:
            List[str]: List of allowed CORS origins
        """
        if not self.CORS_ORIGINS:
            return []
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    This function uses lru_cache to ensure only one Settings instance is created
    and reused throughout the application lifecycle.

    Returns:
        Settings: Singleton Settings instance
    """
    return Settings()
