from decimal import Decimal
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings, read from the environment or a local .env file"""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Falls back to SQLite for local development
    database_url: str = "sqlite:///./split_money.db"
    log_level: str = "INFO"

    balance_cache_ttl_seconds: float = 60.0

    alerts_enabled: bool = True
    high_balance_threshold: Decimal = Decimal("100")
    owed_to_you_threshold: Decimal = Decimal("50")
    you_owe_threshold: Decimal = Decimal("50")


@lru_cache
def get_settings() -> Settings:
    return Settings()
