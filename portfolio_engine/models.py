# portfolio_engine/models.py
"""
Input records consumed by the valuation engine.

These are plain, already-normalized records handed over by the transaction
source and the price oracle. The engine never persists them; storage and
schema migrations belong to the host application.

Sign conventions:
    - quantity is always a non-negative magnitude; direction comes from kind
    - gross_amount is the net cash effect of the event (fee already applied):
      negative when money leaves the account (buy, withdrawal, fee),
      positive when money enters (sell, dividend, interest, deposit)
    - fee_amount is non-negative and always reduces the net result
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from portfolio_engine.utils.date_utils import ensure_utc


# Enums help enforce a closed set of event kinds; the engine never guesses
# a kind from a free-text label.
class TransactionKind(str, enum.Enum):
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    FEE = "fee"

    @property
    def is_trade(self) -> bool:
        """True for events that move units of an asset."""
        return self in (TransactionKind.BUY, TransactionKind.SELL)

    @property
    def is_cash_only(self) -> bool:
        """True for pure cash movements, which never carry an asset."""
        return self in (
            TransactionKind.DEPOSIT,
            TransactionKind.WITHDRAWAL,
            TransactionKind.INTEREST,
            TransactionKind.FEE,
        )


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric value to Decimal without float artefacts.

    Floats go through str() so that 0.1 becomes Decimal("0.1"), not
    Decimal("0.1000000000000000055511151231257827...").

    Raises:
        ValueError: If the value cannot be represented as a number
    """
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a numeric value: {value!r}") from e


@dataclass(frozen=True)
class Transaction:
    """
    A single recorded financial event.

    Attributes:
        id: Unique identifier assigned upstream
        account_id: Account the event belongs to
        timestamp: When the event happened. A datetime, or an ISO-8601 string
                   that the time-series builder parses; anything unparseable
                   is excluded from replay and reported.
        kind: Event kind (buy, sell, deposit, ...)
        asset_id: Asset identifier (ISIN, ticker...). None for cash movements.
        quantity: Units moved (non-negative magnitude)
        gross_amount: Net cash effect in the reporting currency
        fee_amount: Fee charged on this event (non-negative)

    Note:
        Numeric fields are normalized to Decimal on construction and kind is
        coerced from its string value, so upstream code may pass plain
        strings/numbers. Structural validation (e.g. a buy without asset)
        happens in the ledger, which raises InvalidTransactionError.
    """

    id: str
    account_id: str
    timestamp: datetime | str
    kind: TransactionKind
    asset_id: str | None = None
    quantity: Decimal = Decimal("0")
    gross_amount: Decimal = Decimal("0")
    fee_amount: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        # frozen=True: normalize through object.__setattr__
        object.__setattr__(self, "kind", TransactionKind(self.kind))
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        object.__setattr__(self, "gross_amount", to_decimal(self.gross_amount))
        object.__setattr__(self, "fee_amount", to_decimal(self.fee_amount))
        if self.asset_id is not None:
            asset_id = str(self.asset_id).strip()
            object.__setattr__(self, "asset_id", asset_id or None)


@dataclass(frozen=True, order=True)
class PricePoint:
    """
    One observed price for an asset.

    Ordering compares (asset_id, timestamp) so a sorted list of points is a
    per-asset chronological series.
    """

    asset_id: str
    timestamp: datetime
    price: Decimal = field(compare=False)
    currency: str = field(default="EUR", compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))
        object.__setattr__(self, "price", to_decimal(self.price))
        if self.price <= 0:
            raise ValueError(f"price must be positive, got {self.price}")
