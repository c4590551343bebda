# portfolio_engine/services/market_data/base.py
"""
Abstract interface for price providers.

This module defines the contract that all price providers must follow.
Using an abstract base class allows for:
- Easy addition of new providers (Alpha Vantage, broker feeds, etc.)
- Multi-source fallback in the caching price oracle
- Mock implementations for testing
- Consistent retry behavior across all providers

Providers are the network-facing half of the price oracle. The valuation
engine never calls them directly; it only talks to CachingPriceOracle
through the two-call PriceOracleProtocol.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from portfolio_engine.models import PricePoint
from portfolio_engine.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

# Type variable for generic return type in retry method
T = TypeVar('T')


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class PriceQuote:
    """
    Current price of an asset as reported by a provider.

    Attributes:
        asset_id: Asset identifier the quote was requested for
        price: Last traded price (positive)
        timestamp: When the provider says the price applies (aware UTC)
        currency: Quote currency
        provider: Name of the provider that answered
    """

    asset_id: str
    price: Decimal
    timestamp: datetime
    currency: str
    provider: str

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise ValueError(f"price must be positive, got {self.price}")

    def to_price_point(self) -> PricePoint:
        return PricePoint(
            asset_id=self.asset_id,
            timestamp=self.timestamp,
            price=self.price,
            currency=self.currency,
        )


@dataclass
class HistoricalPricesResult:
    """
    Result of fetching historical prices for an asset.

    Attributes:
        asset_id: The asset requested
        prices: Daily price points, ascending (empty if none)
        success: Whether the fetch was successful
        error: Error message if fetch failed
        from_date: Requested start date
        to_date: Requested end date
    """

    asset_id: str
    prices: list[PricePoint] = field(default_factory=list)
    success: bool = True
    error: str | None = None
    from_date: date | None = None
    to_date: date | None = None

    @property
    def days_fetched(self) -> int:
        """Number of trading days fetched."""
        return len(self.prices)


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class PriceProvider(ABC):
    """
    Abstract base class for price providers.

    Retry Behavior:
        The base class provides a `_execute_with_retry` method that implements
        exponential backoff retry logic. Subclasses can override the retry
        configuration by setting class attributes:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

    Retryable Exceptions:
        - ProviderUnavailableError: Network issues, timeouts, server errors
        - RateLimitError: API rate limit exceeded

    Non-Retryable Exceptions:
        - TickerNotFoundError: Permanent failure (asset unknown to provider)
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Unique identifier for this provider.

        Used for logging, error messages, and quote attribution.
        """
        pass

    @abstractmethod
    def get_current_price(self, asset_id: str) -> PriceQuote:
        """
        Fetch the latest price of an asset.

        Raises:
            TickerNotFoundError: Asset unknown to the provider
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    @abstractmethod
    def get_historical_prices(
            self,
            asset_id: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """
        Fetch daily prices of an asset.

        Args:
            asset_id: Asset identifier
            start_date: Start date (inclusive)
            end_date: End date (inclusive)

        Raises:
            TickerNotFoundError: Asset unknown to the provider
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Uses exponential backoff for ProviderUnavailableError and
        RateLimitError. Anything else is raised immediately.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()
