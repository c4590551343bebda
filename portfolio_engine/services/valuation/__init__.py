# portfolio_engine/services/valuation/__init__.py
"""
Valuation engine package.

This package turns transaction logs and prices into performance figures:
- Account performance (account)
- Global performance across accounts (global_)
- Single-asset performance (asset)
- Time series for charts (time_series on every summary)

Usage:
    from portfolio_engine.services.valuation import PerformanceService

    service = PerformanceService(source=source, oracle=oracle)
    summary = service.account("acc-1", "1y")

Architecture:
    valuation/
    ├── __init__.py        # This file - package exports
    ├── types.py           # Internal data classes
    ├── ledger.py          # Ledger replay engine (average cost)
    ├── calculators.py     # Price fallback chain, percentages, cash balance
    ├── time_series.py     # Ordering, checkpoints, rolling time series
    ├── periods.py         # Period -> window mapping
    └── service.py         # PerformanceService (aggregator)

Data Flow:
    PerformanceService → TimeSeriesBuilder → LedgerReplayEngine
    TimeSeriesBuilder / PerformanceService → HoldingValueCalculator → Price oracle
"""

# Calculators (for testing / direct usage)
from portfolio_engine.services.valuation.calculators import (
    CashBalanceCalculator,
    HoldingValueCalculator,
    PerformanceCalculator,
)
from portfolio_engine.services.valuation.ledger import LedgerReplayEngine
from portfolio_engine.services.valuation.periods import Period, Window, resolve_window
from portfolio_engine.services.valuation.service import PerformanceService
from portfolio_engine.services.valuation.time_series import (
    CheckpointPolicy,
    OrderingResult,
    TimeSeriesBuilder,
    TimeSeriesResult,
    order_transactions,
)
from portfolio_engine.services.valuation.types import (
    AssetPerformanceSummary,
    CashSummary,
    Holding,
    LedgerState,
    OversellEvent,
    PerformancePoint,
    PerformanceSummary,
    PriceLookup,
)

__all__ = [
    # Main service
    "PerformanceService",
    # Engine
    "LedgerReplayEngine",
    "TimeSeriesBuilder",
    "TimeSeriesResult",
    "CheckpointPolicy",
    "OrderingResult",
    "order_transactions",
    # Periods
    "Period",
    "Window",
    "resolve_window",
    # Calculators
    "HoldingValueCalculator",
    "PerformanceCalculator",
    "CashBalanceCalculator",
    # Types
    "Holding",
    "CashSummary",
    "OversellEvent",
    "LedgerState",
    "PriceLookup",
    "PerformancePoint",
    "PerformanceSummary",
    "AssetPerformanceSummary",
]
