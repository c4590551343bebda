# tests/services/test_time_series.py
"""
Tests for the time-series builder.

Test Coverage:
- Ordering (stable ties, unparseable timestamps)
- Checkpoint spacing and the always-present window end
- Clipping to the first transaction (and the unclipped variant)
- Rolling single-pass replay
- Price fallback and staleness at checkpoints
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from portfolio_engine.services.valuation.ledger import LedgerReplayEngine
from portfolio_engine.services.valuation.time_series import (
    CheckpointPolicy,
    TimeSeriesBuilder,
    order_transactions,
)
from tests.conftest import make_txn


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


WINDOW_START = utc(2024, 1, 1)
WINDOW_END = utc(2024, 1, 10)


class CountingLedger(LedgerReplayEngine):
    """Ledger that counts applied transactions."""

    def __init__(self):
        self.applied = []

    def apply_transaction(self, state, txn):
        self.applied.append(txn.id)
        super().apply_transaction(state, txn)


@pytest.fixture
def policy():
    return CheckpointPolicy(daily_max_days=30, three_day_max_days=90)


@pytest.fixture
def buy_x():
    return make_txn("b1", "buy", utc(2024, 1, 3, 10), asset_id="X", quantity=10, gross="-1000")


# =============================================================================
# ORDERING
# =============================================================================

class TestOrderTransactions:
    """Tests for transaction ordering."""

    def test_sorts_by_timestamp(self):
        """Out-of-order input is sorted ascending."""
        result = order_transactions([
            make_txn("late", "deposit", utc(2024, 1, 5), gross=1),
            make_txn("early", "deposit", utc(2024, 1, 1), gross=1),
        ])

        assert [t.id for t in result.transactions] == ["early", "late"]

    def test_ties_keep_input_order(self):
        """Equal timestamps keep their input order."""
        ts = utc(2024, 1, 1)
        result = order_transactions([
            make_txn(name, "deposit", ts, gross=1) for name in ("c", "a", "b")
        ])

        assert [t.id for t in result.transactions] == ["c", "a", "b"]

    def test_parses_iso_strings(self):
        """ISO-8601 strings, including a trailing Z, are ordered with datetimes."""
        result = order_transactions([
            make_txn("s", "deposit", "2024-01-02T00:00:00Z", gross=1),
            make_txn("d", "deposit", utc(2024, 1, 1, 12), gross=1),
        ])

        assert [t.id for t in result.transactions] == ["d", "s"]
        assert result.ordered[1].timestamp == utc(2024, 1, 2)

    def test_excludes_unparseable(self):
        """Unparseable timestamps are excluded and reported, not dropped silently."""
        bad = make_txn("bad", "deposit", "31/12/2024", gross=1)
        result = order_transactions([bad, make_txn("ok", "deposit", utc(2024, 1, 1), gross=1)])

        assert [t.id for t in result.transactions] == ["ok"]
        assert result.excluded == [bad]

    def test_within_window(self):
        """within() keeps only transactions inside the closed window."""
        result = order_transactions([
            make_txn("before", "deposit", utc(2023, 12, 31), gross=1),
            make_txn("start", "deposit", WINDOW_START, gross=1),
            make_txn("end", "deposit", WINDOW_END, gross=1),
            make_txn("after", "deposit", utc(2024, 1, 11), gross=1),
        ]).within(WINDOW_START, WINDOW_END)

        assert [t.id for t in result.transactions] == ["start", "end"]


# =============================================================================
# CHECKPOINTS
# =============================================================================

class TestCheckpointPolicy:
    """Tests for checkpoint spacing."""

    @pytest.mark.parametrize("days,expected", [
        (1, timedelta(days=1)),
        (30, timedelta(days=1)),
        (31, timedelta(days=3)),
        (90, timedelta(days=3)),
        (91, timedelta(days=7)),
        (365, timedelta(days=7)),
    ])
    def test_interval_for_window_length(self, policy, days, expected):
        """Daily up to 30 days, every 3 days up to 90, weekly beyond."""
        assert policy.interval_for(WINDOW_START, WINDOW_START + timedelta(days=days)) == expected

    def test_end_always_included(self, policy):
        """The actual window end closes the series even off the grid."""
        end = utc(2024, 1, 3, 12)
        points = policy.checkpoints(WINDOW_START, end)

        assert points == [utc(2024, 1, 1), utc(2024, 1, 2), utc(2024, 1, 3), end]

    def test_end_on_grid_not_duplicated(self, policy):
        """An end that falls on the grid appears once."""
        points = policy.checkpoints(WINDOW_START, WINDOW_END)

        assert len(points) == 10
        assert points[-1] == WINDOW_END

    def test_empty_window(self, policy):
        """A window with start == end yields its end only."""
        assert policy.checkpoints(WINDOW_END, WINDOW_END) == [WINDOW_END]

    def test_weekly_bounds_point_count(self, policy):
        """A year of weekly checkpoints stays around 53 points."""
        points = policy.checkpoints(utc(2023, 1, 1), utc(2024, 1, 1))
        assert 52 <= len(points) <= 54


# =============================================================================
# BUILDER
# =============================================================================

class TestTimeSeriesBuilder:
    """Tests for TimeSeriesBuilder."""

    def test_clips_to_first_transaction(self, oracle, policy, buy_x):
        """A window starting before any activity starts at the first transaction."""
        oracle.add_price("X", utc(2024, 1, 1), "100")
        builder = TimeSeriesBuilder(oracle, policy=policy, clip_to_first_transaction=True)

        points = builder.build([buy_x], WINDOW_START, WINDOW_END)

        assert points[0].timestamp == utc(2024, 1, 3, 10)
        assert points[-1].timestamp == WINDOW_END
        assert len(points) == 8
        assert points[0].value == Decimal("1000")

    def test_unclipped_starts_at_requested_start(self, oracle, policy, buy_x):
        """Without clipping, checkpoints before inception are zero."""
        oracle.add_price("X", utc(2024, 1, 1), "100")
        builder = TimeSeriesBuilder(oracle, policy=policy, clip_to_first_transaction=False)

        points = builder.build([buy_x], WINDOW_START, WINDOW_END)

        assert points[0].timestamp == WINDOW_START
        assert len(points) == 10
        assert [p.value for p in points[:3]] == [Decimal("0")] * 3
        assert points[3].value == Decimal("1000")

    def test_values_follow_historical_prices(self, oracle, policy, buy_x):
        """Each checkpoint uses the latest price at or before it."""
        oracle.add_price("X", utc(2024, 1, 1), "100")
        oracle.add_price("X", utc(2024, 1, 6), "110")
        builder = TimeSeriesBuilder(oracle, policy=policy, clip_to_first_transaction=True)

        points = builder.build([buy_x], WINDOW_START, WINDOW_END)

        values = [p.value for p in points]
        assert values[:3] == [Decimal("1000")] * 3
        assert values[3:] == [Decimal("1100")] * 5
        assert all(p.invested == Decimal("1000") for p in points)
        assert not any(p.is_stale for p in points)

    def test_holdings_change_over_time(self, oracle, policy, buy_x):
        """A later sell is reflected only from its checkpoint on."""
        oracle.add_price("X", utc(2024, 1, 1), "100")
        sell = make_txn("s1", "sell", utc(2024, 1, 6, 10), asset_id="X", quantity=4, gross="440")
        builder = TimeSeriesBuilder(oracle, policy=policy, clip_to_first_transaction=True)

        points = builder.build([sell, buy_x], WINDOW_START, WINDOW_END)

        by_time = {p.timestamp: p for p in points}
        assert by_time[utc(2024, 1, 5, 10)].value == Decimal("1000")
        assert by_time[utc(2024, 1, 6, 10)].value == Decimal("600")
        assert by_time[utc(2024, 1, 6, 10)].invested == Decimal("600")

    def test_single_pass_replay(self, oracle, policy):
        """Each transaction is applied exactly once across all checkpoints."""
        ledger = CountingLedger()
        transactions = [
            make_txn(f"b{i}", "buy", utc(2024, 1, 1 + i, 9), asset_id="X", quantity=1, gross="-100")
            for i in range(8)
        ]
        builder = TimeSeriesBuilder(oracle, ledger=ledger, policy=policy, clip_to_first_transaction=True)

        result = builder.run(order_transactions(transactions), WINDOW_START, WINDOW_END)

        assert sorted(ledger.applied) == sorted(t.id for t in transactions)
        assert result.state.holding("X").quantity == Decimal("8")

    def test_current_price_fallback_is_stale(self, oracle, policy, buy_x):
        """Missing history falls back to the current price and flags the point."""
        oracle.set_current("X", "120")
        builder = TimeSeriesBuilder(oracle, policy=policy, clip_to_first_transaction=True)

        result = builder.run(order_transactions([buy_x]), WINDOW_START, WINDOW_END)

        assert all(p.value == Decimal("1200") for p in result.points)
        assert all(p.is_stale for p in result.points)
        assert result.stale_assets == {"X"}

    def test_cost_basis_fallback_keeps_asset(self, oracle, policy, buy_x):
        """With no price at all the asset is valued at cost, never dropped."""
        builder = TimeSeriesBuilder(oracle, policy=policy, clip_to_first_transaction=True)

        points = builder.build([buy_x], WINDOW_START, WINDOW_END)

        assert all(p.value == Decimal("1000") for p in points)
        assert all(p.is_stale for p in points)

    def test_no_transactions(self, oracle, policy):
        """No activity gives an empty series."""
        builder = TimeSeriesBuilder(oracle, policy=policy, clip_to_first_transaction=True)
        assert builder.build([], WINDOW_START, WINDOW_END) == []

    def test_build_is_deterministic(self, oracle, policy, buy_x):
        """Two builds over the same input are identical."""
        oracle.add_price("X", utc(2024, 1, 1), "100")
        builder = TimeSeriesBuilder(oracle, policy=policy, clip_to_first_transaction=True)

        assert builder.build([buy_x], WINDOW_START, WINDOW_END) == builder.build(
            [buy_x], WINDOW_START, WINDOW_END
        )
