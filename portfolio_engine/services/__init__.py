# portfolio_engine/services/__init__.py
"""
Service layer of the valuation engine.

Services:
- Have NO knowledge of HTTP or storage
- Raise domain-specific exceptions
- Receive their collaborators (transaction source, price oracle) explicitly
- Are easily testable via dependency injection

Usage:
    from portfolio_engine.services import PerformanceService, FeeService
    from portfolio_engine.services import CachingPriceOracle
    from portfolio_engine.services import InvalidPeriodError, InvalidTransactionError

Architecture:
    services/
    ├── __init__.py        # This file - main exports
    ├── exceptions.py      # Domain exceptions
    ├── constants.py       # Business constants
    ├── protocols.py       # Collaborator interfaces (Protocol classes)
    ├── fees.py            # Fee metrics
    ├── valuation/         # Ledger, time series, aggregator
    └── market_data/       # Price providers, store, caching oracle
"""

from portfolio_engine.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidTransactionError,
    InvalidPeriodError,
    NotFoundError,
    AccountNotFoundError,
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from portfolio_engine.services.fees import FeePoint, FeeService, FeeSummary
from portfolio_engine.services.market_data import (
    CachingPriceOracle,
    PriceStore,
    YahooFinancePriceProvider,
)
from portfolio_engine.services.protocols import (
    PriceOracleProtocol,
    TransactionSourceProtocol,
)
from portfolio_engine.services.valuation import (
    AssetPerformanceSummary,
    PerformancePoint,
    PerformanceService,
    PerformanceSummary,
)

__all__ = [
    # Services
    "PerformanceService",
    "FeeService",
    "CachingPriceOracle",
    "PriceStore",
    "YahooFinancePriceProvider",
    # Results
    "PerformanceSummary",
    "AssetPerformanceSummary",
    "PerformancePoint",
    "FeeSummary",
    "FeePoint",
    # Protocols
    "PriceOracleProtocol",
    "TransactionSourceProtocol",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidTransactionError",
    "InvalidPeriodError",
    "NotFoundError",
    "AccountNotFoundError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
]
