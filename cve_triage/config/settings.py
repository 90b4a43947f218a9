"""
Configuration settings for the CVE triage engine
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Store backend: "memory" or "postgres"
    STORE_BACKEND: str = "memory"
    STORE_TIMEOUT_SECONDS: float = 10.0
    TRANSACTION_MAX_RETRIES: int = 10

    # Database configuration
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "vulnerability_db"
    DB_USER: str = "vuln_user"
    DB_PASSWORD: str = "vuln_pass"
    DB_MIN_CONNECTIONS: int = 1
    DB_POOL_SIZE: int = 10

    # Synchronization
    SYNC_CONCURRENCY: int = 8
    SYNC_RETRY_ATTEMPTS: int = 3
    SYNC_BACKOFF_BASE_SECONDS: float = 0.5
    SYNC_BACKOFF_MAX_SECONDS: float = 30.0

    # Classification lists; the bundled file is used when unset
    CLASSIFICATION_FILE: Optional[str] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    return Settings()
