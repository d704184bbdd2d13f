"""Application configuration."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://prospect:prospect123@db:5432/prospect_intel"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Redis (identity locks for duplicate resolution; in-process locks when unset)
    REDIS_URL: Optional[str] = None
    IDENTITY_LOCK_TIMEOUT_SECONDS: int = 30

    # Normalization
    DEFAULT_PHONE_REGION: str = "PH"

    # Job processing
    MAX_RETRIES: int = 3
    RETRY_BASE_SECONDS: float = 1.0
    HIGH_PRIORITY_CUTOFF: int = 3
    DEFAULT_PRIORITY: int = 5
    # A processing or retrying job untouched for this long is treated as stranded
    JOB_LEASE_SECONDS: int = 600

    # Scoring
    HOT_PROSPECT_THRESHOLD: int = 70
    FOLLOW_UP_AFTER_HOURS: int = 48

    # Queue worker (APScheduler sweep of queued and stranded jobs)
    ENABLE_QUEUE_WORKER: bool = True
    QUEUE_POLL_SECONDS: int = 30
    QUEUE_BATCH_SIZE: int = 50

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
