"""
JalanRusak - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: Optional[str] = None
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_echo: bool = False

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    submission_timeout_seconds: float = 30.0

    # Photo evidence probing
    photo_probe_timeout_seconds: float = 5.0
    photo_max_redirects: int = 3
    photo_max_concurrency: int = 5
    photo_user_agent: str = "JalanRusak-PhotoValidator/1.0"

    # Region centroid proximity rule
    proximity_check_enabled: bool = False
    proximity_radius_meters: float = 200.0

    # Cache Settings
    centroid_cache_ttl_seconds: int = 86400
    centroid_cache_max_entries: int = 10000

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
