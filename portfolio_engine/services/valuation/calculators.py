# portfolio_engine/services/valuation/calculators.py
"""
Point-in-time valuation calculators.

Each calculator follows the Single Responsibility Principle:
- HoldingValueCalculator: Prices a holding through the fallback chain
- PerformanceCalculator: Performance percentages and gain decomposition
- CashBalanceCalculator: Running cash balance over a full history

Design Principles:
- Each calculator does ONE thing well
- Stateless apart from injected collaborators
- Uses Decimal for ALL financial calculations, no rounding
- Missing prices degrade to substitutes, never raise

Usage:
    value_calc = HoldingValueCalculator(oracle)
    lookup = value_calc.price_at(holding, checkpoint)
    value = holding.quantity * lookup.price
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from portfolio_engine.models import Transaction
from portfolio_engine.services.constants import (
    HUNDRED,
    PRICE_SOURCE_COST_BASIS,
    PRICE_SOURCE_CURRENT,
    PRICE_SOURCE_HISTORICAL,
    ZERO,
)
from portfolio_engine.services.protocols import PriceOracleProtocol
from portfolio_engine.services.valuation.ledger import LedgerReplayEngine
from portfolio_engine.services.valuation.types import Holding, PriceLookup

logger = logging.getLogger(__name__)


# =============================================================================
# HOLDING VALUE CALCULATOR
# =============================================================================

class HoldingValueCalculator:
    """
    Prices holdings, degrading through a fallback chain when data is missing.

    Checkpoint chain (price_at):
        1. oracle.price_at_or_before(asset, timestamp)   fresh
        2. oracle.current_price(asset)                   stale
        3. holding average cost ("assume no change")     stale

    Summary chain (current):
        1. oracle.current_price(asset)                   fresh
        2. oracle.price_at_or_before(asset, as_of)       stale
        3. holding average cost                          stale

    The asset is never dropped from a sum, so transient price gaps do not
    show up as value cliffs. Each answer of the oracle is terminal for its
    lookup: no retries happen here.
    """

    def __init__(self, oracle: PriceOracleProtocol) -> None:
        self._oracle = oracle

    def price_at(self, holding: Holding, timestamp: datetime) -> PriceLookup:
        """Price for a historical checkpoint."""
        price = self._oracle.price_at_or_before(holding.asset_id, timestamp)
        if price is not None:
            return PriceLookup(price=price, is_stale=False, source=PRICE_SOURCE_HISTORICAL)

        price = self._oracle.current_price(holding.asset_id)
        if price is not None:
            logger.debug(
                f"No historical price for {holding.asset_id} at {timestamp.isoformat()}, "
                f"using current price"
            )
            return PriceLookup(price=price, is_stale=True, source=PRICE_SOURCE_CURRENT)

        return self._cost_basis_lookup(holding, timestamp)

    def current(self, holding: Holding, as_of: datetime) -> PriceLookup:
        """Price for the summary valuation (now)."""
        price = self._oracle.current_price(holding.asset_id)
        if price is not None:
            return PriceLookup(price=price, is_stale=False, source=PRICE_SOURCE_CURRENT)

        price = self._oracle.price_at_or_before(holding.asset_id, as_of)
        if price is not None:
            logger.debug(
                f"No current price for {holding.asset_id}, using last known price"
            )
            return PriceLookup(price=price, is_stale=True, source=PRICE_SOURCE_HISTORICAL)

        return self._cost_basis_lookup(holding, as_of)

    @staticmethod
    def _cost_basis_lookup(holding: Holding, timestamp: datetime) -> PriceLookup:
        logger.warning(
            f"No price available for {holding.asset_id} at {timestamp.isoformat()}, "
            f"valuing at average cost"
        )
        return PriceLookup(
            price=holding.average_cost,
            is_stale=True,
            source=PRICE_SOURCE_COST_BASIS,
        )


# =============================================================================
# PERFORMANCE CALCULATOR
# =============================================================================

class PerformanceCalculator:
    """
    Performance percentages and gains.

    Formulas:
        unrealized      = value - invested
        portfolio pct   = (value - invested - fees) / invested x 100
        asset pct       = (value + realized - invested) / invested x 100

    Note:
        Percentages are 0 when nothing is invested (no division by zero).
        Realized gains are already net of fees, so the asset formula does
        not subtract fees a second time.
    """

    @staticmethod
    def unrealized(total_value: Decimal, total_invested: Decimal) -> Decimal:
        return total_value - total_invested

    @staticmethod
    def portfolio_pct(
            total_value: Decimal,
            total_invested: Decimal,
            total_fees: Decimal,
    ) -> Decimal:
        if total_invested <= ZERO:
            return ZERO
        return (total_value - total_invested - total_fees) / total_invested * HUNDRED

    @staticmethod
    def asset_pct(
            total_value: Decimal,
            realized_gains: Decimal,
            total_invested: Decimal,
    ) -> Decimal:
        if total_invested <= ZERO:
            return ZERO
        return (total_value + realized_gains - total_invested) / total_invested * HUNDRED


# =============================================================================
# CASH BALANCE CALCULATOR
# =============================================================================

class CashBalanceCalculator:
    """
    Running cash balance of a scope.

    Always computed over the ENTIRE history handed in, never over a
    period window: a cash balance is a running total, not a period delta.

    balance = deposits - withdrawals - buys + sells + dividends + interest - fees
    """

    def __init__(self, ledger: LedgerReplayEngine | None = None) -> None:
        self._ledger = ledger or LedgerReplayEngine()

    def calculate(self, ordered_transactions: Iterable[Transaction]) -> Decimal:
        state = self._ledger.replay(ordered_transactions)
        return state.cash.balance
