# portfolio_engine/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are used by the ledger, the time-series builder and the
performance service. They are NOT Pydantic schemas - those are defined in
portfolio_engine/schemas/performance.py for serialization.

Design Principles:
- Use Decimal for ALL financial values (never float)
- Use aware UTC datetimes for timestamps
- Replay state is mutable and request-scoped; outputs are plain data
- Warnings accumulate for data quality tracking

Type Hierarchy:
    Holding                 - Average-cost position for one asset
    CashSummary             - Cumulative non-asset cash movements
    OversellEvent           - A sell that exceeded the recorded holding
    LedgerState             - Complete running replay state
    PriceLookup             - Price used for a valuation, with staleness
    PerformancePoint        - Single point in the value time series
    PerformanceSummary      - Account / global performance result
    AssetPerformanceSummary - Single-asset performance result
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from portfolio_engine.services.constants import ZERO


# =============================================================================
# HOLDINGS
# =============================================================================

@dataclass
class Holding:
    """
    Average-cost holding for a single asset.

    The ledger keeps one running (quantity, cost_basis) pair per asset
    rather than a list of lots. Every sell re-derives the average cost
    from these two numbers.

    Attributes:
        asset_id: Asset identifier
        quantity: Units currently held (never negative)
        cost_basis: Currency amount invested in the open position (never negative)

    Note:
        cost_basis is always zero when quantity is zero.
    """

    asset_id: str
    quantity: Decimal = ZERO
    cost_basis: Decimal = ZERO

    @property
    def is_open(self) -> bool:
        """True if units are currently held."""
        return self.quantity > ZERO

    @property
    def average_cost(self) -> Decimal:
        """Cost basis per unit, or 0 when nothing is held."""
        if self.quantity <= ZERO:
            return ZERO
        return self.cost_basis / self.quantity


@dataclass
class CashSummary:
    """
    Cumulative cash movements of a replay scope.

    Every field is a non-negative magnitude; balance applies the signs.
    """

    deposits: Decimal = ZERO
    withdrawals: Decimal = ZERO
    buys: Decimal = ZERO
    sells: Decimal = ZERO
    dividends: Decimal = ZERO
    interest: Decimal = ZERO
    fees: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        """Cash left in the scope: money in minus money out, net of fees."""
        return (
            self.deposits
            - self.withdrawals
            - self.buys
            + self.sells
            + self.dividends
            + self.interest
            - self.fees
        )


@dataclass(frozen=True)
class OversellEvent:
    """
    A sell whose quantity exceeded the recorded holding.

    The ledger clamps the holding to zero instead of rejecting the sell;
    each clamp is recorded so callers can audit data quality.
    """

    transaction_id: str
    asset_id: str
    requested_quantity: Decimal
    held_quantity: Decimal

    @property
    def excess_quantity(self) -> Decimal:
        return self.requested_quantity - self.held_quantity

    def describe(self) -> str:
        return (
            f"Transaction {self.transaction_id} sells {self.requested_quantity} "
            f"units of {self.asset_id} but only {self.held_quantity} were held; "
            f"holding clamped to zero"
        )


@dataclass
class LedgerState:
    """
    Running state of one ledger replay.

    Created by LedgerReplayEngine.new_state() and mutated only through
    LedgerReplayEngine.apply_transaction(). Never shared between requests.

    Attributes:
        holdings: Holding per asset_id (closed holdings stay with zero values)
        cash: Cumulative cash movements
        realized_gains: Sale gains + dividends + interest - fees
        total_fees: Every fee charged, standalone or attached to an event
        total_invested_ever: Sum of all buy principals (never reduced by sells)
        oversells: Clamp events, in replay order
        transactions_applied: Number of events replayed
    """

    holdings: dict[str, Holding] = field(default_factory=dict)
    cash: CashSummary = field(default_factory=CashSummary)
    realized_gains: Decimal = ZERO
    total_fees: Decimal = ZERO
    total_invested_ever: Decimal = ZERO
    oversells: list[OversellEvent] = field(default_factory=list)
    transactions_applied: int = 0

    @property
    def open_holdings(self) -> list[Holding]:
        """Holdings with quantity > 0, in first-seen order."""
        return [h for h in self.holdings.values() if h.is_open]

    @property
    def total_invested(self) -> Decimal:
        """Cost basis still open across all holdings."""
        return sum((h.cost_basis for h in self.holdings.values()), ZERO)

    def holding(self, asset_id: str) -> Holding | None:
        return self.holdings.get(asset_id)


# =============================================================================
# PRICES
# =============================================================================

@dataclass(frozen=True)
class PriceLookup:
    """
    Price used to value a holding at a point in time.

    Attributes:
        price: Unit price used for the valuation
        is_stale: True when a substitute was used (current price for a
                  historical checkpoint, or the holding's own average cost)
        source: One of "historical", "current", "cost_basis"
    """

    price: Decimal
    is_stale: bool
    source: str


# =============================================================================
# OUTPUTS
# =============================================================================

@dataclass
class PerformancePoint:
    """
    A single point in the portfolio value time series.

    Attributes:
        timestamp: Checkpoint time (aware UTC)
        value: Sum of quantity x price over open holdings
        invested: Sum of open cost basis
        is_stale: True if any holding at this checkpoint used a substitute price
    """

    timestamp: datetime
    value: Decimal
    invested: Decimal
    is_stale: bool = False


@dataclass
class PerformanceSummary:
    """
    Performance of an account or of all accounts over a period.

    Attributes:
        total_value: Market value of open holdings
        total_invested: Cost basis still open
        cash_balance: Running cash balance over the ENTIRE history of the
                      scope; unlike every other figure it ignores the period
        total_fees: Fees charged within the period
        realized_gains: Sale gains + dividends + interest - fees within the period
        unrealized_gains: total_value - total_invested
        performance_pct: ((value - invested - fees) / invested) x 100
        time_series: Value/invested checkpoints across the period
        has_stale_prices: True if any valuation used a substitute price
        stale_assets: Assets valued with a substitute price, sorted
        warnings: Human-readable data quality warnings
        oversell_count: Number of sells clamped to the held quantity
        excluded_transaction_count: Records dropped for unparseable timestamps
    """

    total_value: Decimal = ZERO
    total_invested: Decimal = ZERO
    cash_balance: Decimal = ZERO
    total_fees: Decimal = ZERO
    realized_gains: Decimal = ZERO
    unrealized_gains: Decimal = ZERO
    performance_pct: Decimal = ZERO
    time_series: list[PerformancePoint] = field(default_factory=list)
    has_stale_prices: bool = False
    stale_assets: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    oversell_count: int = 0
    excluded_transaction_count: int = 0

    @property
    def total_points(self) -> int:
        """Number of points in the time series."""
        return len(self.time_series)


@dataclass
class AssetPerformanceSummary(PerformanceSummary):
    """
    Performance of a single asset across all accounts.

    Adds asset details to the summary figures. performance_pct here
    includes realized gains: ((value + realized - invested) / invested) x 100.

    Attributes:
        asset_id: Asset identifier
        name: Display name from the transaction source (None if unknown)
        current_price: Current price from the oracle (None if unavailable)
        total_quantity: Units held across all accounts
    """

    asset_id: str = ""
    name: str | None = None
    current_price: Decimal | None = None
    total_quantity: Decimal = ZERO
