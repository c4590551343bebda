# portfolio_engine/services/fees.py
"""
Fee metrics.

Summarizes what fees cost an account (or all accounts) over a period:
total, average per charged transaction, breakdown by transaction kind,
and a per-day series for charting.

Only transactions that actually charged a fee count. A standalone fee
event charges its fee_amount, or its whole gross amount when no separate
fee amount was recorded (same rule as the ledger).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable

from portfolio_engine.models import Transaction
from portfolio_engine.services.constants import ZERO
from portfolio_engine.services.exceptions import AccountNotFoundError
from portfolio_engine.services.protocols import TransactionSourceProtocol
from portfolio_engine.services.valuation.ledger import LedgerReplayEngine
from portfolio_engine.services.valuation.periods import Period, Window, resolve_window
from portfolio_engine.services.valuation.time_series import order_transactions
from portfolio_engine.utils.context import calculation_context
from portfolio_engine.utils.date_utils import day_of, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeePoint:
    """Fees charged on one UTC day."""

    day: date
    fees: Decimal


@dataclass
class FeeSummary:
    """
    Fee metrics for a period.

    Attributes:
        total_fees: Sum of all fees charged
        average_fee: total_fees / transaction_count (0 without fees)
        transaction_count: Transactions that charged a fee
        fees_by_kind: Fees per transaction kind ("buy", "fee", ...)
        time_series: Fees per UTC day, ascending
        excluded_transaction_count: Records dropped for unparseable timestamps
    """

    total_fees: Decimal = ZERO
    average_fee: Decimal = ZERO
    transaction_count: int = 0
    fees_by_kind: dict[str, Decimal] = field(default_factory=dict)
    time_series: list[FeePoint] = field(default_factory=list)
    excluded_transaction_count: int = 0


class FeeService:
    """Fee metrics for one account or all accounts."""

    def __init__(
            self,
            source: TransactionSourceProtocol,
            clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._source = source
        self._clock = clock

    def account_fees(self, account_id: str, period: Period | str) -> FeeSummary:
        """
        Raises:
            InvalidPeriodError: If the period is unknown
            AccountNotFoundError: If the source does not know the account
        """
        with calculation_context():
            window = resolve_window(period, self._clock())
            if account_id not in self._source.list_accounts():
                raise AccountNotFoundError(account_id)

            summary = self._summarize(
                self._source.get_transactions(account_id=account_id), window
            )
            logger.info(
                f"Account fees: account={account_id}, total={summary.total_fees}, "
                f"count={summary.transaction_count}"
            )
            return summary

    def global_fees(self, period: Period | str) -> FeeSummary:
        """
        Raises:
            InvalidPeriodError: If the period is unknown
        """
        with calculation_context():
            window = resolve_window(period, self._clock())

            transactions: list[Transaction] = []
            for account_id in self._source.list_accounts():
                transactions.extend(self._source.get_transactions(account_id=account_id))

            summary = self._summarize(transactions, window)
            logger.info(
                f"Global fees: total={summary.total_fees}, count={summary.transaction_count}"
            )
            return summary

    @staticmethod
    def _summarize(transactions: list[Transaction], window: Window) -> FeeSummary:
        ordering = order_transactions(transactions).within(window.start, window.end)
        summary = FeeSummary(excluded_transaction_count=len(ordering.excluded))

        by_day: dict[date, Decimal] = {}
        for timestamp, txn in ordering.ordered:
            fee = LedgerReplayEngine.fee_of(txn)
            if fee <= ZERO:
                continue

            summary.total_fees += fee
            summary.transaction_count += 1
            kind = txn.kind.value
            summary.fees_by_kind[kind] = summary.fees_by_kind.get(kind, ZERO) + fee
            day = day_of(timestamp)
            by_day[day] = by_day.get(day, ZERO) + fee

        if summary.transaction_count:
            summary.average_fee = summary.total_fees / summary.transaction_count

        summary.time_series = [FeePoint(day=day, fees=fees) for day, fees in sorted(by_day.items())]
        return summary
