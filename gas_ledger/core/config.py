"""Application configuration settings."""

import os
from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_database_url() -> str:
    """Get the default database URL, using the mounted volume path if available."""
    if os.path.isdir("/data"):
        return "sqlite:////data/gas_ledger.db"
    return "sqlite:///./gas_ledger.db"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "Gas Ledger"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database - defaults to the volume path if /data exists
    DATABASE_URL: str = _get_default_database_url()

    # Tank volume (gallons) used to convert percentage points into volume
    TANK_CAPACITY: Decimal = Decimal("120")

    # Consumption index bands, in gallons per day
    INDEX_LOW_THRESHOLD: Decimal = Decimal("1.0")
    INDEX_HIGH_THRESHOLD: Decimal = Decimal("3.0")

    # Audit name recorded when no identity is available
    DEFAULT_SUBMITTER: str = "System"


settings = Settings()
