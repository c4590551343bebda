# portfolio_engine/services/constants.py
"""
Centralized constants for the valuation engine.

Tunable thresholds (checkpoint spacing, cache TTL) live in config.Settings;
this module holds the fixed business constants and period definitions.

Usage:
    from portfolio_engine.services.constants import PERIOD_MONTHS, ZERO
"""

from datetime import timedelta
from decimal import Decimal


# =============================================================================
# NUMERIC CONSTANTS
# =============================================================================

ZERO: Decimal = Decimal("0")
HUNDRED: Decimal = Decimal("100")

# Quantization used by the serialization schemas (the engine itself never rounds)
MONEY_QUANTUM: Decimal = Decimal("0.01")
PERCENT_QUANTUM: Decimal = Decimal("0.01")
PRICE_QUANTUM: Decimal = Decimal("0.00000001")


# =============================================================================
# PERIODS
# =============================================================================

# Period name -> months to look back from "now". "all" has no entry: it uses
# settings.all_period_start as a far-past sentinel.
PERIOD_MONTHS: dict[str, int] = {
    "1m": 1,
    "3m": 3,
    "1y": 12,
}

PERIOD_ALL: str = "all"

VALID_PERIODS: tuple[str, ...] = ("1m", "3m", "1y", PERIOD_ALL)


# =============================================================================
# CHECKPOINT SPACING
# =============================================================================

DAILY_INTERVAL: timedelta = timedelta(days=1)
THREE_DAY_INTERVAL: timedelta = timedelta(days=3)
WEEKLY_INTERVAL: timedelta = timedelta(days=7)


# =============================================================================
# PRICE SOURCES
# =============================================================================

# How a checkpoint/holding price was obtained
PRICE_SOURCE_HISTORICAL: str = "historical"
PRICE_SOURCE_CURRENT: str = "current"
PRICE_SOURCE_COST_BASIS: str = "cost_basis"
