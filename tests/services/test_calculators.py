# tests/services/test_calculators.py
"""
Unit tests for valuation calculators.

Test Coverage:
- HoldingValueCalculator: checkpoint and summary fallback chains
- PerformanceCalculator: portfolio and asset percentages, fee sensitivity
- CashBalanceCalculator: full-history balance
"""

from decimal import Decimal

import pytest

from portfolio_engine.services.valuation.calculators import (
    CashBalanceCalculator,
    HoldingValueCalculator,
    PerformanceCalculator,
)
from portfolio_engine.services.valuation.types import Holding
from tests.conftest import NOW, days_ago, make_txn


@pytest.fixture
def holding():
    return Holding(asset_id="X", quantity=Decimal("10"), cost_basis=Decimal("1000"))


# =============================================================================
# HOLDING VALUE CALCULATOR
# =============================================================================

class TestHoldingValueCalculatorCheckpoint:
    """Tests for the checkpoint chain: historical → current → average cost."""

    def test_uses_historical_price(self, oracle, holding):
        """A price at or before the checkpoint is fresh."""
        oracle.add_price("X", days_ago(5), "110")
        oracle.set_current("X", "130")

        lookup = HoldingValueCalculator(oracle).price_at(holding, days_ago(1))

        assert lookup.price == Decimal("110")
        assert lookup.is_stale is False
        assert lookup.source == "historical"

    def test_ignores_prices_after_checkpoint(self, oracle, holding):
        """Prices dated after the checkpoint are not used."""
        oracle.add_price("X", days_ago(1), "110")
        oracle.set_current("X", "130")

        lookup = HoldingValueCalculator(oracle).price_at(holding, days_ago(5))

        assert lookup.price == Decimal("130")
        assert lookup.is_stale is True
        assert lookup.source == "current"

    def test_falls_back_to_average_cost(self, oracle, holding):
        """Without any price the holding is valued at its average cost."""
        lookup = HoldingValueCalculator(oracle).price_at(holding, NOW)

        assert lookup.price == Decimal("100")
        assert lookup.is_stale is True
        assert lookup.source == "cost_basis"


class TestHoldingValueCalculatorCurrent:
    """Tests for the summary chain: current → last known → average cost."""

    def test_uses_current_price(self, oracle, holding):
        """The current price is fresh."""
        oracle.set_current("X", "55")
        oracle.add_price("X", days_ago(3), "50")

        lookup = HoldingValueCalculator(oracle).current(holding, NOW)

        assert lookup.price == Decimal("55")
        assert lookup.is_stale is False

    def test_falls_back_to_last_known(self, oracle, holding):
        """Without a current price the last known price is used, flagged stale."""
        oracle.add_price("X", days_ago(3), "50")

        lookup = HoldingValueCalculator(oracle).current(holding, NOW)

        assert lookup.price == Decimal("50")
        assert lookup.is_stale is True

    def test_falls_back_to_average_cost(self, oracle, holding):
        """Without any price the average cost is used."""
        lookup = HoldingValueCalculator(oracle).current(holding, NOW)

        assert lookup.price == Decimal("100")
        assert lookup.source == "cost_basis"


# =============================================================================
# PERFORMANCE CALCULATOR
# =============================================================================

class TestPerformanceCalculator:
    """Tests for performance percentages."""

    def test_zero_performance_without_fees(self):
        """qty 10, bought at 100, worth 100, no fees: 0%."""
        pct = PerformanceCalculator.portfolio_pct(Decimal("1000"), Decimal("1000"), Decimal("0"))
        assert pct == Decimal("0")

    def test_fees_make_performance_negative(self):
        """Same position with 10 in fees: negative."""
        pct = PerformanceCalculator.portfolio_pct(Decimal("1000"), Decimal("1000"), Decimal("10"))
        assert pct == Decimal("-1")

    def test_strictly_decreasing_in_fees(self):
        """More fees, all else equal, always means a lower percentage."""
        pcts = [
            PerformanceCalculator.portfolio_pct(Decimal("1200"), Decimal("1000"), Decimal(fee))
            for fee in ("0", "0.01", "5", "10", "250")
        ]
        assert all(a > b for a, b in zip(pcts, pcts[1:]))

    def test_nothing_invested(self):
        """No division by zero: 0% when nothing is invested."""
        assert PerformanceCalculator.portfolio_pct(Decimal("0"), Decimal("0"), Decimal("5")) == 0
        assert PerformanceCalculator.asset_pct(Decimal("0"), Decimal("50"), Decimal("0")) == 0

    def test_asset_pct_includes_realized(self):
        """Asset performance adds realized gains to the current value."""
        pct = PerformanceCalculator.asset_pct(Decimal("2400"), Decimal("250"), Decimal("2250"))
        assert pct == Decimal("400") / Decimal("2250") * Decimal("100")

    def test_unrealized(self):
        """Unrealized gain is value minus invested."""
        assert PerformanceCalculator.unrealized(Decimal("3300.00"), Decimal("3001.80")) == Decimal("298.20")


# =============================================================================
# CASH BALANCE CALCULATOR
# =============================================================================

class TestCashBalanceCalculator:
    """Tests for the running cash balance."""

    def test_balance_formula(self):
        """deposits - withdrawals - buys + sells + dividends + interest - fees."""
        balance = CashBalanceCalculator().calculate([
            make_txn("d", "deposit", days_ago(9), gross="1000"),
            make_txn("w", "withdrawal", days_ago(8), gross="-100"),
            make_txn("b", "buy", days_ago(7), asset_id="X", quantity=5, gross="-501", fee="1"),
            make_txn("s", "sell", days_ago(6), asset_id="X", quantity=2, gross="219", fee="1"),
            make_txn("v", "dividend", days_ago(5), asset_id="X", gross="4"),
            make_txn("i", "interest", days_ago(4), gross="2"),
            make_txn("f", "fee", days_ago(3), gross="-3"),
        ])

        # 1000 - 100 - 500 + 220 + 4 + 2 - (1 + 1 + 3)
        assert balance == Decimal("621")

    def test_empty_history(self):
        """No transactions, no cash."""
        assert CashBalanceCalculator().calculate([]) == Decimal("0")
