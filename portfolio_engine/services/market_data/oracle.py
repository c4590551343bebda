# portfolio_engine/services/market_data/oracle.py
"""
Caching multi-source price oracle.

Implements PriceOracleProtocol for the valuation engine on top of a
PriceStore and an ordered list of PriceProviders.

current_price(asset):
    1. Cached quote younger than the TTL
    2. Providers in order; the first answer wins and is stored
    3. None ("unavailable"); stored history is left to the caller's
       price_at_or_before() fallback, which reports it as stale

price_at_or_before(asset, timestamp):
    Store lookup only; sync_history() backfills the store.

Provider errors never escape: every MarketDataError is logged and turned
into "unavailable". The engine itself never retries; retries happen
inside the providers (tenacity).
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Sequence

from portfolio_engine.config import settings
from portfolio_engine.services.exceptions import MarketDataError
from portfolio_engine.services.market_data.base import PriceProvider
from portfolio_engine.services.market_data.store import PriceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CachedPrice:
    price: Decimal
    cached_at: float


class CachingPriceOracle:
    """
    Price oracle with a TTL cache, multi-source fallback and a local store.

    Attributes:
        _providers: Providers tried in order for current prices
        _store: Historical price store
        _ttl: Cache lifetime in seconds (0 disables caching)
        _clock: Monotonic clock, injectable for tests
    """

    def __init__(
            self,
            providers: Sequence[PriceProvider] = (),
            store: PriceStore | None = None,
            ttl_seconds: int | None = None,
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._providers = list(providers)
        self._store = store if store is not None else PriceStore()
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.price_cache_ttl_seconds
        self._clock = clock
        self._cache: dict[str, _CachedPrice] = {}
        self._lock = threading.RLock()

    @property
    def store(self) -> PriceStore:
        return self._store

    # =========================================================================
    # ORACLE CONTRACT
    # =========================================================================

    def price_at_or_before(self, asset_id: str, timestamp: datetime) -> Decimal | None:
        point = self._store.price_at_or_before(asset_id, timestamp)
        return point.price if point is not None else None

    def current_price(self, asset_id: str) -> Decimal | None:
        cached = self._get_cached(asset_id)
        if cached is not None:
            logger.debug(f"Price cache hit for {asset_id}")
            return cached

        for provider in self._providers:
            try:
                quote = provider.get_current_price(asset_id)
            except MarketDataError as e:
                logger.warning(f"Provider {provider.name} failed for {asset_id}: {e}")
                continue

            self._store.add(quote.to_price_point())
            self._set_cached(asset_id, quote.price)
            return quote.price

        logger.error(f"No price available for {asset_id}")
        return None

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def sync_history(self, asset_id: str, start_date: date, end_date: date) -> int:
        """
        Backfill the store from the first provider that answers.

        Returns:
            Number of price points stored (0 if every provider failed)
        """
        for provider in self._providers:
            try:
                result = provider.get_historical_prices(asset_id, start_date, end_date)
            except MarketDataError as e:
                logger.warning(
                    f"Provider {provider.name} failed to sync {asset_id}: {e}"
                )
                continue

            stored = self._store.add_many(result.prices)
            logger.info(
                f"Synced {stored} prices for {asset_id} from {provider.name} "
                f"({start_date} to {end_date})"
            )
            return stored

        logger.error(f"Could not sync prices for {asset_id}: all providers failed")
        return 0

    def invalidate(self, asset_id: str | None = None) -> None:
        """Drop cached current prices (one asset, or all)."""
        with self._lock:
            if asset_id is None:
                self._cache.clear()
            else:
                self._cache.pop(asset_id, None)

    # =========================================================================
    # CACHE
    # =========================================================================

    def _get_cached(self, asset_id: str) -> Decimal | None:
        if self._ttl <= 0:
            return None
        with self._lock:
            entry = self._cache.get(asset_id)
            if entry is None:
                return None
            if self._clock() - entry.cached_at >= self._ttl:
                del self._cache[asset_id]
                return None
            return entry.price

    def _set_cached(self, asset_id: str, price: Decimal) -> None:
        if self._ttl <= 0:
            return
        with self._lock:
            self._cache[asset_id] = _CachedPrice(price=price, cached_at=self._clock())
