"""
Configuration Utility - Environment Variables Management

Centralized configuration loading from .env files using pydantic-settings.
Type-safe access to all environment variables with validation.

Usage:
    from utils.config import settings

    base_url = settings.HN_BASE_URL
    interval = settings.POLL_INTERVAL_SECONDS
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream API Configuration
    HN_BASE_URL: str = Field(default="https://hacker-news.firebaseio.com/v0/")
    API_TIMEOUT: int = Field(default=30)

    # Watcher Configuration
    POLL_INTERVAL_SECONDS: float = Field(default=5, gt=0)
    PAGE_SIZE: int = Field(default=30, ge=1, le=30)
    FAIL_FAST: bool = Field(default=True)
    TIMER_ARM_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    RUN_ONCE: bool = Field(default=False)

    # File System Paths
    OUTPUT_DIR: str = Field(default="/app/data/hn_top")
    OUTPUT_PREFIX: str = Field(default="topstories")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")

    # Application Metadata
    ENVIRONMENT: str = Field(default="production")
    APP_NAME: str = Field(default="hn-watcher")
    APP_VERSION: str = Field(default="0.1.0")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Singleton Settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
