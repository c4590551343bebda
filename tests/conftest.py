# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Fake price oracle (historical + current prices, call counting)
- In-memory transaction source
- Mock price provider
- Transaction factory and a fixed clock
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from portfolio_engine.models import PricePoint, Transaction, TransactionKind
from portfolio_engine.services.exceptions import TickerNotFoundError
from portfolio_engine.services.market_data.base import (
    HistoricalPricesResult,
    PriceProvider,
    PriceQuote,
)

# Fixed "now" for every test that needs a clock
NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


# =============================================================================
# TRANSACTION FACTORY
# =============================================================================

def make_txn(
        txn_id: str,
        kind: TransactionKind | str,
        timestamp: datetime | str = NOW,
        account_id: str = "acc-1",
        asset_id: str | None = None,
        quantity: str | int = 0,
        gross: str | int = 0,
        fee: str | int = 0,
) -> Transaction:
    """Build a Transaction from short, readable arguments."""
    return Transaction(
        id=txn_id,
        account_id=account_id,
        timestamp=timestamp,
        kind=kind,
        asset_id=asset_id,
        quantity=Decimal(str(quantity)),
        gross_amount=Decimal(str(gross)),
        fee_amount=Decimal(str(fee)),
    )


@pytest.fixture
def txn():
    """Transaction factory."""
    return make_txn


@pytest.fixture
def clock():
    """Clock frozen at NOW."""
    return lambda: NOW


# =============================================================================
# FAKE PRICE ORACLE
# =============================================================================

class FakePriceOracle:
    """
    In-memory implementation of PriceOracleProtocol.

    Historical prices are kept per asset as (timestamp, price) pairs;
    lookups return the latest one at or before the requested time.
    """

    def __init__(self) -> None:
        self._history: dict[str, list[tuple[datetime, Decimal]]] = {}
        self._current: dict[str, Decimal] = {}
        self.historical_calls = 0
        self.current_calls = 0

    def add_price(self, asset_id: str, timestamp: datetime, price: str | int) -> None:
        series = self._history.setdefault(asset_id, [])
        series.append((timestamp, Decimal(str(price))))
        series.sort(key=lambda item: item[0])

    def set_current(self, asset_id: str, price: str | int) -> None:
        self._current[asset_id] = Decimal(str(price))

    def price_at_or_before(self, asset_id: str, timestamp: datetime) -> Decimal | None:
        self.historical_calls += 1
        found = None
        for ts, price in self._history.get(asset_id, []):
            if ts <= timestamp:
                found = price
        return found

    def current_price(self, asset_id: str) -> Decimal | None:
        self.current_calls += 1
        return self._current.get(asset_id)


@pytest.fixture
def oracle() -> FakePriceOracle:
    return FakePriceOracle()


# =============================================================================
# IN-MEMORY TRANSACTION SOURCE
# =============================================================================

class InMemoryTransactionSource:
    """
    In-memory implementation of TransactionSourceProtocol.

    Accounts are listed in the order given (or first-seen order).
    """

    def __init__(
            self,
            transactions: list[Transaction] | None = None,
            accounts: list[str] | None = None,
            asset_names: dict[str, str] | None = None,
    ) -> None:
        self._transactions = list(transactions or [])
        self._accounts = list(accounts or [])
        for t in self._transactions:
            if t.account_id not in self._accounts:
                self._accounts.append(t.account_id)
        self._asset_names = dict(asset_names or {})

    def add(self, *transactions: Transaction) -> None:
        for t in transactions:
            self._transactions.append(t)
            if t.account_id not in self._accounts:
                self._accounts.append(t.account_id)

    def list_accounts(self) -> list[str]:
        return list(self._accounts)

    def get_transactions(
            self,
            account_id: str | None = None,
            start: datetime | None = None,
            end: datetime | None = None,
            asset_id: str | None = None,
    ) -> list[Transaction]:
        result = []
        for t in self._transactions:
            if account_id is not None and t.account_id != account_id:
                continue
            if asset_id is not None and t.asset_id != asset_id:
                continue
            if isinstance(t.timestamp, datetime):
                if start is not None and t.timestamp < start:
                    continue
                if end is not None and t.timestamp > end:
                    continue
            result.append(t)
        return result

    def get_asset_name(self, asset_id: str) -> str | None:
        return self._asset_names.get(asset_id)


@pytest.fixture
def source() -> InMemoryTransactionSource:
    return InMemoryTransactionSource()


# =============================================================================
# MOCK PRICE PROVIDER
# =============================================================================

class MockPriceProvider(PriceProvider):
    """
    Mock implementation of PriceProvider for testing.

    Allows configuring quotes and history per asset and simulating errors.
    """

    def __init__(self, name: str = "mock") -> None:
        self._name = name
        self._quotes: dict[str, Decimal] = {}
        self._history: dict[str, list[PricePoint]] = {}
        self._errors: dict[str, Exception] = {}
        self.current_calls = 0
        self.history_calls = 0

    @property
    def name(self) -> str:
        return self._name

    def set_quote(self, asset_id: str, price: str | int) -> None:
        self._quotes[asset_id] = Decimal(str(price))

    def set_history(self, asset_id: str, points: list[PricePoint]) -> None:
        self._history[asset_id] = points

    def add_error(self, asset_id: str, error: Exception) -> None:
        self._errors[asset_id] = error

    def clear_error(self, asset_id: str) -> None:
        self._errors.pop(asset_id, None)

    def get_current_price(self, asset_id: str) -> PriceQuote:
        self.current_calls += 1
        if asset_id in self._errors:
            raise self._errors[asset_id]
        if asset_id not in self._quotes:
            raise TickerNotFoundError(asset_id=asset_id, provider=self.name)
        return PriceQuote(
            asset_id=asset_id,
            price=self._quotes[asset_id],
            timestamp=NOW,
            currency="EUR",
            provider=self.name,
        )

    def get_historical_prices(
            self,
            asset_id: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        self.history_calls += 1
        if asset_id in self._errors:
            raise self._errors[asset_id]
        points = [
            p for p in self._history.get(asset_id, [])
            if start_date <= p.timestamp.date() <= end_date
        ]
        return HistoricalPricesResult(
            asset_id=asset_id,
            prices=points,
            from_date=start_date,
            to_date=end_date,
        )


@pytest.fixture
def mock_provider() -> MockPriceProvider:
    return MockPriceProvider()
