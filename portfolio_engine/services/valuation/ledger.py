# portfolio_engine/services/valuation/ledger.py
"""
Ledger replay engine.

Turns an ordered stream of transactions into holdings (average cost basis
per asset) and cumulative cash movements.

Design Principles:
- Stateless engine: all state lives in a LedgerState owned by the caller
- apply_transaction() mutates that state, one event at a time, so the
  time-series builder can advance a single replay across checkpoints
- The engine never sorts; callers hand it chronologically ordered input
- Over-sells are clamped and recorded, never raised

Gross/fee convention:
    gross_amount is the net cash effect with the fee already applied.
    Outflows (buy, withdrawal):   principal = |gross| - fee
    Inflows (sell, dividend, interest, deposit): principal = |gross| + fee
    Standalone fee event:         charge = fee_amount, or |gross| if fee_amount is 0

Usage:
    engine = LedgerReplayEngine()
    state = engine.replay(ordered_transactions)
    for holding in state.open_holdings:
        ...
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from portfolio_engine.models import Transaction, TransactionKind
from portfolio_engine.services.constants import ZERO
from portfolio_engine.services.exceptions import InvalidTransactionError
from portfolio_engine.services.valuation.types import (
    Holding,
    LedgerState,
    OversellEvent,
)

logger = logging.getLogger(__name__)


class LedgerReplayEngine:
    """
    Replays transactions into a LedgerState using average-cost accounting.

    Transitions:
        buy:        quantity += qty, cost_basis += principal
        sell:       realized += principal - avg_cost x qty (full sell quantity),
                    quantity and cost_basis reduced, clamped at zero
        dividend,
        interest:   realized += principal, cash only
        deposit,
        withdrawal: cash only
        fee:        realized -= charge, cash only

    The fee_amount of every event is added to total_fees and subtracted
    from realized gains; it never touches cost basis.
    """

    def new_state(self) -> LedgerState:
        """Create an empty replay state."""
        return LedgerState()

    def replay(self, transactions: Iterable[Transaction]) -> LedgerState:
        """
        Replay an ordered transaction stream from an empty state.

        Args:
            transactions: Transactions sorted ascending by timestamp

        Returns:
            Final LedgerState

        Raises:
            InvalidTransactionError: If a transaction is structurally invalid
        """
        state = self.new_state()
        for txn in transactions:
            self.apply_transaction(state, txn)
        return state

    def apply_transaction(self, state: LedgerState, txn: Transaction) -> None:
        """
        Apply a single transaction to the state (mutates state).

        Raises:
            InvalidTransactionError: If the transaction is structurally invalid
        """
        self._validate(txn)

        kind = txn.kind

        if kind == TransactionKind.BUY:
            self._apply_buy(state, txn)
        elif kind == TransactionKind.SELL:
            self._apply_sell(state, txn)
        elif kind == TransactionKind.DIVIDEND:
            principal = self._inflow_principal(txn)
            state.cash.dividends += principal
            state.realized_gains += principal
        elif kind == TransactionKind.INTEREST:
            principal = self._inflow_principal(txn)
            state.cash.interest += principal
            state.realized_gains += principal
        elif kind == TransactionKind.DEPOSIT:
            state.cash.deposits += self._inflow_principal(txn)
        elif kind == TransactionKind.WITHDRAWAL:
            state.cash.withdrawals += self._outflow_principal(txn)

        fee = self.fee_of(txn)
        if fee > ZERO:
            state.total_fees += fee
            state.cash.fees += fee
            state.realized_gains -= fee

        state.transactions_applied += 1

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def _apply_buy(self, state: LedgerState, txn: Transaction) -> None:
        principal = self._outflow_principal(txn)
        holding = self._get_or_open(state, txn.asset_id)

        holding.quantity += txn.quantity
        holding.cost_basis += principal

        state.total_invested_ever += principal
        state.cash.buys += principal

    def _apply_sell(self, state: LedgerState, txn: Transaction) -> None:
        principal = self._inflow_principal(txn)
        holding = self._get_or_open(state, txn.asset_id)

        held = holding.quantity

        if txn.quantity == held:
            # Exact close relieves the whole basis; no division residue
            relieved_basis = holding.cost_basis
        else:
            # On an over-sell this exceeds the basis held; basis clamps below
            relieved_basis = holding.average_cost * txn.quantity

        state.realized_gains += principal - relieved_basis
        state.cash.sells += principal

        holding.quantity = max(held - txn.quantity, ZERO)
        holding.cost_basis = max(holding.cost_basis - relieved_basis, ZERO)
        if holding.quantity == ZERO:
            holding.cost_basis = ZERO

        if txn.quantity > held:
            event = OversellEvent(
                transaction_id=txn.id,
                asset_id=holding.asset_id,
                requested_quantity=txn.quantity,
                held_quantity=held,
            )
            state.oversells.append(event)
            logger.debug(event.describe())

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _get_or_open(state: LedgerState, asset_id: str) -> Holding:
        """Return the asset's holding, (re)opening it if needed."""
        holding = state.holdings.get(asset_id)
        if holding is None:
            holding = Holding(asset_id=asset_id)
            state.holdings[asset_id] = holding
        return holding

    @staticmethod
    def fee_of(txn: Transaction) -> Decimal:
        """
        Fee charged by a transaction.

        A standalone fee event charges its fee_amount, or its whole gross
        amount when no separate fee amount was recorded.
        """
        if txn.kind == TransactionKind.FEE and txn.fee_amount == ZERO:
            return abs(txn.gross_amount)
        return txn.fee_amount

    @staticmethod
    def _outflow_principal(txn: Transaction) -> Decimal:
        """Principal of money leaving the account: |gross| minus the fee."""
        return max(abs(txn.gross_amount) - txn.fee_amount, ZERO)

    @staticmethod
    def _inflow_principal(txn: Transaction) -> Decimal:
        """Principal of money entering the account: |gross| plus the fee."""
        return abs(txn.gross_amount) + txn.fee_amount

    @staticmethod
    def _validate(txn: Transaction) -> None:
        if txn.fee_amount < ZERO:
            raise InvalidTransactionError(
                txn.id, f"negative fee amount {txn.fee_amount}", field="fee_amount"
            )
        if txn.kind.is_cash_only and txn.asset_id:
            raise InvalidTransactionError(
                txn.id,
                f"{txn.kind.value} must not carry an asset identifier ({txn.asset_id})",
                field="asset_id",
            )
        if txn.kind.is_trade:
            if not txn.asset_id:
                raise InvalidTransactionError(
                    txn.id, f"{txn.kind.value} without asset identifier", field="asset_id"
                )
            if txn.quantity <= ZERO:
                raise InvalidTransactionError(
                    txn.id,
                    f"{txn.kind.value} with non-positive quantity {txn.quantity}",
                    field="quantity",
                )
