# portfolio_engine/services/market_data/__init__.py
"""
Market data services package.

This package contains:
- Abstract interface for price providers (base.py)
- Yahoo Finance implementation (yahoo.py)
- In-memory historical price store (store.py)
- Caching multi-source price oracle for the valuation engine (oracle.py)

Usage:
    from portfolio_engine.services.market_data import (
        CachingPriceOracle,
        PriceStore,
        YahooFinancePriceProvider,
    )

    oracle = CachingPriceOracle(
        providers=[YahooFinancePriceProvider(symbols={"IE00B4L5Y983": "IWDA.AS"})],
    )
    oracle.sync_history("IE00B4L5Y983", date(2024, 1, 1), date(2024, 12, 31))

Architecture:
    PriceProvider (ABC)
    └── YahooFinancePriceProvider (concrete)

    CachingPriceOracle (implements PriceOracleProtocol)
    └── TTL cache → providers in order → PriceStore
"""

from portfolio_engine.services.market_data.base import (
    PriceProvider,
    PriceQuote,
    HistoricalPricesResult,
)
from portfolio_engine.services.market_data.oracle import CachingPriceOracle
from portfolio_engine.services.market_data.store import PriceStore
from portfolio_engine.services.market_data.yahoo import YahooFinancePriceProvider

__all__ = [
    # Abstract interface
    "PriceProvider",
    # Data classes
    "PriceQuote",
    "HistoricalPricesResult",
    # Concrete implementations
    "YahooFinancePriceProvider",
    "PriceStore",
    "CachingPriceOracle",
]
