"""
Application configuration using pydantic-settings.
"""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHRONOMAP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"
    project_name: str = "chronomap"

    # Storage
    storage_backend: Literal["json", "sql"] = "json"
    data_dir: str = "./data"  # locations.json, regions.json, timeline.json
    database_url: str = "sqlite:///./chronomap.db"

    # Defaults applied to new or migrated records
    default_epoch_color: str = "#3B82F6"
    default_label_collision_strategy: str = "None"

    # CORS
    backend_cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
