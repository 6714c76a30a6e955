from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Account Ledger API"
    database_url: str = "sqlite:///account_ledger.db"
    log_level: str = "INFO"
    sqlite_busy_timeout: float = 30.0

    jwt_secret: str = "change-this-in-production"
    jwt_algorithm: str = "HS256"

    # Attempts at drawing an unused account number before giving up.
    account_number_attempts: int = 5
    # Attempts at the version-checked balance write before giving up.
    posting_attempts: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LEDGER_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
