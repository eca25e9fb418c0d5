"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    unsplash_access_key: str
    unsplash_secret_key: str
    redirect_uri: str = "urn:ietf:wg:oauth:2.0:oob"
    access_scope: str = "public read_user write_likes"
    api_base_url: str = "https://api.unsplash.com"
    auth_base_url: str = "https://unsplash.com"
    cache_backend: str = "sqlalchemy"
    cache_database_url: str = "sqlite:///./image_feed_cache.db"
    cache_ttl_seconds: int = 600
    feed_page_size: int = 20
    preferences_path: str = "image_feed_preferences.json"
    profile_ttl_seconds: int = 900
    http_timeout_seconds: float = 10
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_cache_backend(raw: str) -> str:
    """Normalize the configured cache backend name."""
    cleaned = raw.strip().lower()
    if cleaned in {"", "sqlalchemy", "sqlite", "database"}:
        return "sqlalchemy"
    if cleaned in {"memory", "in-memory", "inmemory"}:
        return "memory"
    raise ValueError(f"Unknown cache backend: {raw}")
