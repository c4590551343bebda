# portfolio_engine/services/valuation/service.py
"""
Performance Service - Aggregator for portfolio performance.

This is the single entry point for performance calculations:
- account(): One account over a period
- global_(): All accounts merged into one replay
- asset(): One asset across all accounts

Design Principles:
- Dependency Injection: transaction source and price oracle via constructor
- No HTTP Knowledge: Raises domain exceptions, not HTTP errors
- Composable: ledger, time-series builder and calculators do the work
- Fresh state per request: nothing carries over between calls

Period semantics:
    Every profit/loss figure and the time series use only the transactions
    inside the period window. cash_balance is the exception: it is a
    running total over the scope's ENTIRE history.

Usage:
    from portfolio_engine.services.valuation import PerformanceService

    service = PerformanceService(source=my_source, oracle=my_oracle)
    summary = service.account("acc-1", "3m")
    portfolio = service.global_("all")
    detail = service.asset("IE00B4L5Y983", "1y")
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from portfolio_engine.models import Transaction
from portfolio_engine.services.constants import ZERO
from portfolio_engine.services.exceptions import AccountNotFoundError, ValidationError
from portfolio_engine.services.protocols import (
    PriceOracleProtocol,
    TransactionSourceProtocol,
)
from portfolio_engine.services.valuation.calculators import (
    CashBalanceCalculator,
    HoldingValueCalculator,
    PerformanceCalculator,
)
from portfolio_engine.services.valuation.ledger import LedgerReplayEngine
from portfolio_engine.services.valuation.periods import Period, Window, resolve_window
from portfolio_engine.services.valuation.time_series import (
    CheckpointPolicy,
    OrderingResult,
    TimeSeriesBuilder,
    order_transactions,
)
from portfolio_engine.services.valuation.types import (
    AssetPerformanceSummary,
    LedgerState,
    PerformanceSummary,
)
from portfolio_engine.utils.context import calculation_context
from portfolio_engine.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class PerformanceService:
    """
    Main service for performance calculations.

    Attributes:
        _source: Transaction source (already validated, de-duplicated records)
        _oracle: Price oracle (two-call contract)
        _clock: Returns "now"; injectable for deterministic tests
        _ledger: Ledger replay engine
        _builder: Time-series builder
        _value_calc: Prices holdings for the summary valuation
        _perf_calc: Performance percentages
        _cash_calc: Full-history cash balance
    """

    def __init__(
            self,
            source: TransactionSourceProtocol,
            oracle: PriceOracleProtocol,
            clock: Callable[[], datetime] = utc_now,
            policy: CheckpointPolicy | None = None,
            clip_to_first_transaction: bool | None = None,
    ) -> None:
        self._source = source
        self._oracle = oracle
        self._clock = clock

        self._ledger = LedgerReplayEngine()
        self._builder = TimeSeriesBuilder(
            oracle=oracle,
            ledger=self._ledger,
            policy=policy,
            clip_to_first_transaction=clip_to_first_transaction,
        )
        self._value_calc = HoldingValueCalculator(oracle)
        self._perf_calc = PerformanceCalculator()
        self._cash_calc = CashBalanceCalculator(self._ledger)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def account(self, account_id: str, period: Period | str) -> PerformanceSummary:
        """
        Performance of a single account.

        Args:
            account_id: Account identifier known to the transaction source
            period: "1m", "3m", "1y" or "all"

        Returns:
            PerformanceSummary for the period

        Raises:
            InvalidPeriodError: If the period is unknown
            AccountNotFoundError: If the source does not know the account
            InvalidTransactionError: If a transaction is structurally invalid
        """
        with calculation_context():
            period = Period.parse(period)
            window = resolve_window(period, self._clock())

            if account_id not in self._source.list_accounts():
                raise AccountNotFoundError(account_id)

            history = order_transactions(
                self._source.get_transactions(account_id=account_id)
            )

            summary = PerformanceSummary()
            self._fill_summary(summary, history, window)
            summary.performance_pct = self._perf_calc.portfolio_pct(
                summary.total_value, summary.total_invested, summary.total_fees
            )

            logger.info(
                f"Account performance: account={account_id}, period={period.value}, "
                f"value={summary.total_value}, invested={summary.total_invested}, "
                f"points={summary.total_points}, stale={summary.has_stale_prices}"
            )
            return summary

    def global_(self, period: Period | str) -> PerformanceSummary:
        """
        Performance of all accounts together.

        Every account's transactions are merged into ONE chronological
        stream before a single replay, so holdings of the same asset in
        different accounts are netted (a sell in one account relieves
        basis bought in another).

        Raises:
            InvalidPeriodError: If the period is unknown
            InvalidTransactionError: If a transaction is structurally invalid
        """
        with calculation_context():
            period = Period.parse(period)
            window = resolve_window(period, self._clock())

            history = order_transactions(self._merged_transactions())

            summary = PerformanceSummary()
            self._fill_summary(summary, history, window)
            summary.performance_pct = self._perf_calc.portfolio_pct(
                summary.total_value, summary.total_invested, summary.total_fees
            )

            logger.info(
                f"Global performance: period={period.value}, "
                f"value={summary.total_value}, invested={summary.total_invested}, "
                f"points={summary.total_points}, stale={summary.has_stale_prices}"
            )
            return summary

    def asset(self, asset_id: str, period: Period | str) -> AssetPerformanceSummary:
        """
        Performance of one asset across all accounts.

        The merged stream is filtered to events carrying this asset_id;
        pure cash movements (deposits, withdrawals, interest, standalone
        fees) are dropped before replay. cash_balance is the asset's own
        net cash flow over its full history.

        Raises:
            ValidationError: If asset_id is empty
            InvalidPeriodError: If the period is unknown
            InvalidTransactionError: If a transaction is structurally invalid
        """
        with calculation_context():
            asset_id = (asset_id or "").strip()
            if not asset_id:
                raise ValidationError("asset_id must not be empty", field="asset_id")

            period = Period.parse(period)
            window = resolve_window(period, self._clock())

            history = order_transactions(
                txn for txn in self._merged_transactions() if txn.asset_id == asset_id
            )

            summary = AssetPerformanceSummary(
                asset_id=asset_id,
                name=self._source.get_asset_name(asset_id),
                current_price=self._oracle.current_price(asset_id),
            )
            state = self._fill_summary(summary, history, window)

            holding = state.holding(asset_id)
            summary.total_quantity = holding.quantity if holding is not None else ZERO
            summary.performance_pct = self._perf_calc.asset_pct(
                summary.total_value, summary.realized_gains, summary.total_invested
            )

            logger.info(
                f"Asset performance: asset={asset_id}, period={period.value}, "
                f"quantity={summary.total_quantity}, value={summary.total_value}, "
                f"points={summary.total_points}, stale={summary.has_stale_prices}"
            )
            return summary

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _merged_transactions(self) -> list[Transaction]:
        """All accounts' transactions, concatenated in account list order."""
        merged: list[Transaction] = []
        for account_id in self._source.list_accounts():
            merged.extend(self._source.get_transactions(account_id=account_id))
        return merged

    def _fill_summary(
            self,
            summary: PerformanceSummary,
            history: OrderingResult,
            window: Window,
    ) -> LedgerState:
        """
        Fill every figure except performance_pct (mutates summary).

        Args:
            summary: Summary to fill
            history: Full ordered history of the scope
            window: Period window

        Returns:
            Ledger state of the windowed replay
        """
        windowed = history.within(window.start, window.end)
        result = self._builder.run(windowed, window.start, window.end)
        state = result.state

        stale_assets = set(result.stale_assets)
        total_value = ZERO
        for holding in state.open_holdings:
            lookup = self._value_calc.current(holding, window.end)
            total_value += holding.quantity * lookup.price
            if lookup.is_stale:
                stale_assets.add(holding.asset_id)

        summary.total_value = total_value
        summary.total_invested = state.total_invested
        summary.total_fees = state.total_fees
        summary.realized_gains = state.realized_gains
        summary.unrealized_gains = self._perf_calc.unrealized(
            total_value, state.total_invested
        )
        summary.cash_balance = self._cash_calc.calculate(history.transactions)
        summary.time_series = result.points
        summary.has_stale_prices = bool(stale_assets)
        summary.stale_assets = sorted(stale_assets)
        summary.oversell_count = len(state.oversells)
        summary.excluded_transaction_count = len(history.excluded)
        summary.warnings = self._collect_warnings(state, history, summary.stale_assets)
        return state

    @staticmethod
    def _collect_warnings(
            state: LedgerState,
            history: OrderingResult,
            stale_assets: list[str],
    ) -> list[str]:
        warnings: list[str] = []

        for event in state.oversells:
            message = event.describe()
            logger.warning(message)
            warnings.append(message)

        if history.excluded:
            ids = ", ".join(txn.id for txn in history.excluded)
            message = (
                f"{len(history.excluded)} transaction(s) excluded: "
                f"unparseable timestamp ({ids})"
            )
            logger.warning(message)
            warnings.append(message)

        if stale_assets:
            message = f"Stale or substitute prices used for: {', '.join(stale_assets)}"
            logger.warning(message)
            warnings.append(message)

        return warnings
