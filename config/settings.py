"""
Configuration settings for the WorkTrack Portal sync layer.
All sensitive values are loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "WorkTrack Portal"
    debug: bool = Field(default=False, env="DEBUG")
    environment: str = Field(default="production", env="ENVIRONMENT")

    # Server
    host: str = Field(default="0.0.0.0", env="HOST")
    port: int = Field(default=8000, env="PORT")

    # Supabase
    supabase_url: str = Field(default="", env="SUPABASE_URL")
    supabase_anon_key: str = Field(default="", env="SUPABASE_ANON_KEY")

    # Storage
    storage_bucket: str = Field(default="order-files", env="STORAGE_BUCKET")
    signed_url_ttl_seconds: int = Field(default=300, env="SIGNED_URL_TTL_SECONDS")

    # Sync Settings
    sync_interval_seconds: int = Field(default=5, env="SYNC_INTERVAL_SECONDS")
    status_snapshot_limit: int = Field(default=300, env="STATUS_SNAPSHOT_LIMIT")
    event_pull_limit: int = Field(default=100, env="EVENT_PULL_LIMIT")

    # Notification Settings
    notification_capacity: int = Field(default=50, env="NOTIFICATION_CAPACITY")

    # Reports
    timezone: str = Field(default="UTC", env="TIMEZONE")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the application settings."""
    return settings
