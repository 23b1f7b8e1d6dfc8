from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Order Fulfillment Core"
    environment: str = "local"  # local | dev | prod

    storage_backend: Literal["sqlalchemy", "memory"] = "sqlalchemy"
    database_url: str = "sqlite:///orders.db"
    database_echo: bool = False
    # upper bound on waiting for a competing transaction
    lock_timeout_seconds: float = 5.0
    seed_catalog: bool = True

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # ORDER_FULFILLMENT_DATABASE_URL=... overrides database_url, and so on
    model_config = SettingsConfigDict(
        env_prefix="ORDER_FULFILLMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
