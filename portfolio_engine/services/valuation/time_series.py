# portfolio_engine/services/valuation/time_series.py
"""
Time-series builder for portfolio value charts.

Generates value/invested checkpoints across a window by advancing ONE
ledger replay through the transaction stream:

1. Order transactions (stable sort, unparseable excluded)
2. Generate checkpoints with spacing chosen from the window length
3. For each checkpoint, apply only the transactions up to it, then
   snapshot holdings and price them through the fallback chain

Complexity is O(C + T) replay work instead of O(C x T), plus one price
lookup per open holding per checkpoint.

Design Principles:
- Ledger state is reused across checkpoints (rolling state)
- Ordering is deterministic: input order breaks timestamp ties
- Missing prices never drop an asset from a point
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, NamedTuple

from portfolio_engine.config import settings
from portfolio_engine.models import Transaction
from portfolio_engine.services.constants import (
    DAILY_INTERVAL,
    THREE_DAY_INTERVAL,
    WEEKLY_INTERVAL,
    ZERO,
)
from portfolio_engine.services.protocols import PriceOracleProtocol
from portfolio_engine.services.valuation.calculators import HoldingValueCalculator
from portfolio_engine.services.valuation.ledger import LedgerReplayEngine
from portfolio_engine.services.valuation.types import LedgerState, PerformancePoint
from portfolio_engine.utils.date_utils import days_between, ensure_utc, parse_timestamp

logger = logging.getLogger(__name__)


# =============================================================================
# ORDERING
# =============================================================================

class TimedTransaction(NamedTuple):
    """A transaction paired with its parsed UTC timestamp."""

    timestamp: datetime
    transaction: Transaction


@dataclass
class OrderingResult:
    """
    Transactions in replay order, plus those that could not be ordered.

    Attributes:
        ordered: Parsed transactions sorted ascending by timestamp
        excluded: Transactions whose timestamp could not be parsed
    """

    ordered: list[TimedTransaction] = field(default_factory=list)
    excluded: list[Transaction] = field(default_factory=list)

    @property
    def transactions(self) -> list[Transaction]:
        return [item.transaction for item in self.ordered]

    @property
    def first_timestamp(self) -> datetime | None:
        return self.ordered[0].timestamp if self.ordered else None

    def within(self, start: datetime, end: datetime) -> OrderingResult:
        """Subset with start <= timestamp <= end (exclusions carried over)."""
        return OrderingResult(
            ordered=[item for item in self.ordered if start <= item.timestamp <= end],
            excluded=list(self.excluded),
        )


def order_transactions(transactions: Iterable[Transaction]) -> OrderingResult:
    """
    Stable-sort transactions by timestamp.

    Python's sort is stable, so transactions sharing a timestamp keep the
    order they were handed in; repeated calls give identical replays.
    Transactions with an unparseable timestamp are excluded and counted.
    """
    result = OrderingResult()

    for txn in transactions:
        timestamp = parse_timestamp(txn.timestamp)
        if timestamp is None:
            logger.warning(
                f"Excluding transaction {txn.id}: unparseable timestamp {txn.timestamp!r}"
            )
            result.excluded.append(txn)
            continue
        result.ordered.append(TimedTransaction(timestamp, txn))

    result.ordered.sort(key=lambda item: item.timestamp)
    return result


# =============================================================================
# CHECKPOINTS
# =============================================================================

@dataclass(frozen=True)
class CheckpointPolicy:
    """
    Chooses checkpoint spacing from the window length.

    Windows up to daily_max_days get daily points, up to three_day_max_days
    a point every 3 days, and weekly points beyond that. This bounds the
    number of oracle calls for long windows.
    """

    daily_max_days: int = 30
    three_day_max_days: int = 90

    @classmethod
    def from_settings(cls) -> CheckpointPolicy:
        return cls(
            daily_max_days=settings.daily_checkpoint_max_days,
            three_day_max_days=settings.three_day_checkpoint_max_days,
        )

    def interval_for(self, start: datetime, end: datetime) -> timedelta:
        days = days_between(start, end)
        if days <= self.daily_max_days:
            return DAILY_INTERVAL
        if days <= self.three_day_max_days:
            return THREE_DAY_INTERVAL
        return WEEKLY_INTERVAL

    def checkpoints(self, start: datetime, end: datetime) -> list[datetime]:
        """
        Regular grid from start, always closed by the window's actual end.

        Returns:
            Ascending checkpoints; [end] if the window is empty
        """
        if start >= end:
            return [end]

        interval = self.interval_for(start, end)
        points: list[datetime] = []
        current = start
        while current <= end:
            points.append(current)
            current += interval

        if points[-1] != end:
            points.append(end)
        return points


# =============================================================================
# BUILDER
# =============================================================================

@dataclass
class TimeSeriesResult:
    """
    Output of one time-series run.

    Attributes:
        points: Checkpoints in chronological order
        state: Ledger state after applying every ordered transaction
        stale_assets: Assets valued with a substitute price at some checkpoint
    """

    points: list[PerformancePoint]
    state: LedgerState
    stale_assets: set[str] = field(default_factory=set)


class TimeSeriesBuilder:
    """
    Builds the value/invested time series for a window.

    Attributes:
        _ledger: Replay engine advanced across checkpoints
        _value_calc: Prices holdings through the checkpoint fallback chain
        _policy: Checkpoint spacing
        _clip: Start at the first transaction instead of the requested start
    """

    def __init__(
            self,
            oracle: PriceOracleProtocol,
            ledger: LedgerReplayEngine | None = None,
            policy: CheckpointPolicy | None = None,
            clip_to_first_transaction: bool | None = None,
    ) -> None:
        self._ledger = ledger or LedgerReplayEngine()
        self._value_calc = HoldingValueCalculator(oracle)
        self._policy = policy or CheckpointPolicy.from_settings()
        if clip_to_first_transaction is None:
            clip_to_first_transaction = settings.clip_series_to_first_transaction
        self._clip = clip_to_first_transaction

    def build(
            self,
            transactions: Iterable[Transaction],
            window_start: datetime,
            window_end: datetime,
    ) -> list[PerformancePoint]:
        """
        Build the time series for raw (possibly unordered) transactions.

        Args:
            transactions: Transactions of one scope
            window_start: Requested start
            window_end: Requested end (always the last checkpoint)

        Returns:
            PerformancePoints in chronological order, empty without activity
        """
        ordering = order_transactions(transactions)
        return self.run(ordering, window_start, window_end).points

    def run(
            self,
            ordering: OrderingResult,
            window_start: datetime,
            window_end: datetime,
    ) -> TimeSeriesResult:
        """
        Build the time series for already ordered transactions.

        The returned state has every ordered transaction applied, including
        any dated after window_end.
        """
        window_start = ensure_utc(window_start)
        window_end = ensure_utc(window_end)
        state = self._ledger.new_state()

        if not ordering.ordered:
            return TimeSeriesResult(points=[], state=state)

        start = self._effective_start(ordering, window_start, window_end)
        checkpoints = self._policy.checkpoints(start, window_end)

        points: list[PerformancePoint] = []
        stale_assets: set[str] = set()
        items = ordering.ordered
        txn_index = 0
        num_txns = len(items)

        for checkpoint in checkpoints:
            # === PHASE 1: Apply all transactions up to and including checkpoint ===
            while txn_index < num_txns and items[txn_index].timestamp <= checkpoint:
                self._ledger.apply_transaction(state, items[txn_index].transaction)
                txn_index += 1

            # === PHASE 2: Snapshot ===
            points.append(self._snapshot(state, checkpoint, stale_assets))

        while txn_index < num_txns:
            self._ledger.apply_transaction(state, items[txn_index].transaction)
            txn_index += 1

        logger.debug(
            f"Built {len(points)} checkpoints from {start.isoformat()} to "
            f"{window_end.isoformat()} over {num_txns} transactions"
        )
        return TimeSeriesResult(points=points, state=state, stale_assets=stale_assets)

    def _effective_start(
            self,
            ordering: OrderingResult,
            window_start: datetime,
            window_end: datetime,
    ) -> datetime:
        start = max(window_start, settings.all_period_start)
        first = ordering.first_timestamp
        if self._clip and first is not None and first > start:
            start = first
        return min(start, window_end)

    def _snapshot(
            self,
            state: LedgerState,
            checkpoint: datetime,
            stale_assets: set[str],
    ) -> PerformancePoint:
        value = ZERO
        invested = ZERO
        is_stale = False

        for holding in state.open_holdings:
            lookup = self._value_calc.price_at(holding, checkpoint)
            value += holding.quantity * lookup.price
            invested += holding.cost_basis
            if lookup.is_stale:
                is_stale = True
                stale_assets.add(holding.asset_id)

        return PerformancePoint(
            timestamp=checkpoint,
            value=value,
            invested=invested,
            is_stale=is_stale,
        )
