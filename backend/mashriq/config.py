"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./mashriq.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Escrow / fee policy
    PLATFORM_FEE_PERCENT: int = 20
    PLATFORM_ACCOUNT_ID: str = "platform"
    ORDER_NUMBER_PREFIX: str = "MSH"

    # Optimistic locking: how many times a contended write is replayed
    MAX_TRANSITION_RETRIES: int = 3

    # Inactivity thresholds used by the maintenance sweep
    AUTO_CANCEL_PENDING_HOURS: int = 72
    AUTO_COMPLETE_DELIVERED_DAYS: int = 3

    class Config:
        env_file = ".env"


settings = Settings()
