"""Pydantic Settings: typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 8000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── SSE ──────────────────────────────────────────────────
    # Keep-alive comment interval for long-lived EventSourceResponse streams
    sse_ping_interval: int = Field(default=15, ge=1)


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
