"""Application configuration."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    database_url: str = "sqlite+aiosqlite:///./circdesk.db"
    echo_sql: bool = False
    fine_per_day: Decimal = Decimal("0.50")
    default_loan_days: int = 14
    due_soon_days: int = 3
    report_top_count: int = 10
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    cors_origins: list[str] = ["*"]

    model_config = {"env_file": ".env", "env_prefix": "CIRCDESK_", "extra": "ignore"}


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
