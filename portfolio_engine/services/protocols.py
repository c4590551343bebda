# portfolio_engine/services/protocols.py
"""
Protocol interfaces for the engine's external collaborators.

Using typing.Protocol enables structural subtyping:
- Host classes satisfy protocols without inheriting from anything here
- Test fakes work without explicit inheritance
- Clear documentation of the exact contract the engine consumes
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from portfolio_engine.models import Transaction


class PriceOracleProtocol(Protocol):
    """
    Interface required by the valuation engine for prices.

    None means "unavailable"; the engine treats it as a terminal answer for
    that lookup and degrades through its fallback chain. Implementations own
    caching, retries and multi-source fallback.
    """

    def price_at_or_before(self, asset_id: str, timestamp: datetime) -> Decimal | None:
        ...

    def current_price(self, asset_id: str) -> Decimal | None:
        ...


class TransactionSourceProtocol(Protocol):
    """
    Interface required by PerformanceService and FeeService for transactions.

    Transactions are expected validated, typed and de-duplicated upstream.
    """

    def list_accounts(self) -> list[str]:
        ...

    def get_transactions(
        self,
        account_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        asset_id: str | None = None,
    ) -> list[Transaction]:
        ...

    def get_asset_name(self, asset_id: str) -> str | None:
        ...
