from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Transfer Ledger API"
    environment: Literal["local", "development", "production"] = "local"
    database_url: str = "sqlite:///transfer_ledger.db"
    log_level: str = "INFO"

    # Upper bound on waiting for a row lock held by another transfer.
    lock_timeout_ms: int = Field(default=5000, ge=1)
    transfer_max_attempts: int = Field(default=3, ge=1)
    transfer_retry_backoff_ms: int = Field(default=50, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LEDGER_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
