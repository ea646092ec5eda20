from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Transfer Ledger API"
    database_url: str = "sqlite:///transfer_ledger.db"
    log_level: str = "INFO"

    # Amounts are integers in minor units (e.g. cents).
    starting_balance: int = Field(default=1000, ge=0)
    max_transfer_amount: int = Field(default=10**12, ge=1, le=2**63 - 1)
    lock_timeout_seconds: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LEDGER_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
