from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "Asia/Kolkata"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Auth
    # Placeholder secret keeps local/test runs working; deployments override via env.
    JWT_SECRET: str = "test-jwt-secret"
    JWT_ALGORITHM: str = "HS256"

    # Queue
    REDIS_URL: str = "redis://localhost:6379/0"

    # Wallet
    WALLET_CURRENCY: str = "INR"
    TOPUP_MAX_AMOUNT: Decimal = Decimal("1000000.00")

    # Payment-rail provider
    PAYNINJA_BASE_URL: str = "https://api.payninja.in"
    PAYNINJA_API_KEY: str = "test-api-key"
    PAYNINJA_SECRET_KEY: str = "test-secret-key"
    PAYOUT_PROVIDER_TIMEOUT_SECONDS: float = 30.0

    # Reconciliation
    RECONCILE_GRACE_SECONDS: int = 120
    RECONCILE_INTERVAL_SECONDS: int = 120
    RECONCILE_MAX_ATTEMPTS: int = 30
    RECONCILE_BATCH_SIZE: int = 200
    # Worker rounds this down to a divisor of 60
    RECONCILE_CRON_MINUTES: int = 2

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
