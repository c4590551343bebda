# portfolio_engine/config.py
"""
Engine configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- LOG_LEVEL / LOG_FORMAT: Logging setup for host processes
- *_CHECKPOINT_MAX_DAYS: Time-series checkpoint spacing thresholds
- ALL_PERIOD_START: Sentinel start of the "all" period
- PRICE_CACHE_TTL_SECONDS: Current-price cache lifetime in the caching oracle

Configuration is validated on import. Invalid configuration raises a
ValueError with a descriptive message.

Usage:
    from portfolio_engine.config import settings

    if settings.clip_series_to_first_transaction:
        ...
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Single .env at the project root (parent of the package directory)
_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Environment variables:
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")

    Valuation settings (optional, with sensible defaults):
        - DAILY_CHECKPOINT_MAX_DAYS: Daily checkpoints up to this window length (default: 30)
        - THREE_DAY_CHECKPOINT_MAX_DAYS: 3-day checkpoints up to this length (default: 90)
        - ALL_PERIOD_START: Start of the "all" period (default: 2000-01-01 UTC)
        - CLIP_SERIES_TO_FIRST_TRANSACTION: Start charts at first activity (default: True)

    Price oracle settings:
        - PRICE_CACHE_TTL_SECONDS: Lifetime of cached current prices (default: 300)
        - PROVIDER_TIMEOUT_SECONDS: Timeout handed to market data providers (default: 10)
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    # =========================================================================
    # TIME SERIES
    # =========================================================================
    daily_checkpoint_max_days: int = Field(
        default=30,
        ge=1,
        description="Windows up to this many days get one checkpoint per day"
    )
    three_day_checkpoint_max_days: int = Field(
        default=90,
        ge=1,
        description="Windows up to this many days get a checkpoint every 3 days; weekly beyond"
    )
    all_period_start: datetime = Field(
        default=datetime(2000, 1, 1, tzinfo=timezone.utc),
        description="Sentinel far-past start of the 'all' period"
    )
    clip_series_to_first_transaction: bool = Field(
        default=True,
        description="Start the time series at the first transaction instead of the requested start"
    )

    # =========================================================================
    # PRICE ORACLE
    # =========================================================================
    price_cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        description="Lifetime of cached current prices in seconds (0 disables caching)"
    )
    provider_timeout_seconds: int = Field(
        default=10,
        ge=1,
        le=120,
        description="Request timeout for market data providers"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("all_period_start")
    @classmethod
    def normalize_all_period_start(cls, value: datetime) -> datetime:
        """Store the sentinel as aware UTC so it compares with transaction timestamps."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def validate_checkpoint_thresholds(self) -> "Settings":
        """The 3-day threshold must not be shorter than the daily one."""
        if self.three_day_checkpoint_max_days < self.daily_checkpoint_max_days:
            raise ValueError(
                "THREE_DAY_CHECKPOINT_MAX_DAYS "
                f"({self.three_day_checkpoint_max_days}) must be >= "
                f"DAILY_CHECKPOINT_MAX_DAYS ({self.daily_checkpoint_max_days})"
            )
        return self


# Create single instance
settings = Settings()
