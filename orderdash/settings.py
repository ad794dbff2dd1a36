from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings, overridable through ORDERDASH_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="ORDERDASH_", env_file=".env", extra="ignore")

    app_name: str = "Order Dashboard API"
    app_version: str = "0.1.0"

    # Remote dashboard store used by the persistence facade
    remote_url: Optional[str] = None
    remote_timeout: float = 10.0
    remote_attempts: int = 2

    # Local fallback cache for dashboard state
    cache_path: str = "./.orderdash/dashboard_cache.json"

    # Server-side data files
    orders_path: Optional[str] = None
    dashboard_store_path: Optional[str] = None

    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]


@lru_cache
def get_settings() -> Settings:
    return Settings()
