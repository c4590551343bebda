# portfolio_engine/services/market_data/yahoo.py
"""
Yahoo Finance price provider implementation.

This module implements the PriceProvider interface using the yfinance library.
Yahoo Finance is a free data source suitable for personal use.

Key features:
- Asset identifier mapping (ISIN or internal id → Yahoo symbol)
- Comprehensive error handling
- Retry mechanism inherited from base class
- Daily closing prices via DataFrame conversion

Limitations:
- Rate limits (not officially documented, but exist)
- Data may be delayed (15-20 minutes for some markets)
"""

import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

import pandas as pd
import yfinance as yf

from portfolio_engine.config import settings
from portfolio_engine.models import PricePoint
from portfolio_engine.services.constants import PRICE_QUANTUM
from portfolio_engine.services.exceptions import (
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from portfolio_engine.services.market_data.base import (
    PriceProvider,
    PriceQuote,
    HistoricalPricesResult,
)

logger = logging.getLogger(__name__)

# Recent window fetched for a current price; covers weekends and holidays
CURRENT_PRICE_LOOKBACK_DAYS = 7


class YahooFinancePriceProvider(PriceProvider):
    """
    Yahoo Finance implementation of PriceProvider.

    Transactions identify assets by ISIN or other internal ids, which Yahoo
    does not understand; `symbols` maps them to Yahoo symbols
    ("IE00B4L5Y983" → "IWDA.AS"). Unmapped ids are used as-is.

    Configuration:
        symbols: asset_id → Yahoo symbol
        timeout: API request timeout in seconds (default: PROVIDER_TIMEOUT_SECONDS)
        currency: Currency reported on quotes (prices are assumed normalized upstream)

    Example:
        provider = YahooFinancePriceProvider(symbols={"IE00B4L5Y983": "IWDA.AS"})
        quote = provider.get_current_price("IE00B4L5Y983")
    """

    def __init__(
            self,
            symbols: dict[str, str] | None = None,
            timeout: int | None = None,
            currency: str = "EUR",
    ) -> None:
        self._symbols = dict(symbols or {})
        self._timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._currency = currency
        logger.info(
            f"YahooFinancePriceProvider initialized "
            f"(timeout={self._timeout}s, mapped symbols={len(self._symbols)})"
        )

    @property
    def name(self) -> str:
        return "yahoo"

    def symbol_for(self, asset_id: str) -> str:
        """Yahoo symbol of an asset (the id itself when unmapped)."""
        asset_id = asset_id.strip()
        return self._symbols.get(asset_id, asset_id).strip().upper()

    # =========================================================================
    # CURRENT PRICE
    # =========================================================================

    def get_current_price(self, asset_id: str) -> PriceQuote:
        """
        Fetch the latest daily close from Yahoo Finance.

        Raises:
            TickerNotFoundError: If Yahoo returns no data for the symbol
            ProviderUnavailableError: If Yahoo Finance unavailable
            RateLimitError: If rate limited
        """
        return self._execute_with_retry(self._fetch_current_price, asset_id)

    def _fetch_current_price(self, asset_id: str) -> PriceQuote:
        """Internal method to fetch the current price (called by retry wrapper)."""
        symbol = self.symbol_for(asset_id)
        today = datetime.now(timezone.utc).date()

        points = self._download(
            asset_id,
            symbol,
            today - timedelta(days=CURRENT_PRICE_LOOKBACK_DAYS),
            today,
        )
        if not points:
            raise TickerNotFoundError(asset_id=asset_id, provider=self.name, symbol=symbol)

        latest = points[-1]
        return PriceQuote(
            asset_id=asset_id,
            price=latest.price,
            timestamp=latest.timestamp,
            currency=latest.currency,
            provider=self.name,
        )

    # =========================================================================
    # HISTORICAL PRICES
    # =========================================================================

    def get_historical_prices(
            self,
            asset_id: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """
        Fetch daily closing prices from Yahoo Finance.

        Args:
            asset_id: Asset identifier
            start_date: Start date (inclusive)
            end_date: End date (inclusive)

        Returns:
            HistoricalPricesResult with one PricePoint per trading day

        Raises:
            ProviderUnavailableError: If Yahoo Finance unavailable
            RateLimitError: If rate limited
        """
        return self._execute_with_retry(
            self._fetch_historical_prices,
            asset_id,
            start_date,
            end_date,
        )

    def _fetch_historical_prices(
            self,
            asset_id: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """Internal method to fetch historical prices."""
        symbol = self.symbol_for(asset_id)
        result = HistoricalPricesResult(
            asset_id=asset_id,
            from_date=start_date,
            to_date=end_date,
        )

        result.prices = self._download(asset_id, symbol, start_date, end_date)
        if not result.prices:
            # Known symbol may simply have no data in this range
            logger.warning(
                f"No price data for {symbol} between {start_date} and {end_date}"
            )
        return result

    def _download(
            self,
            asset_id: str,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> list[PricePoint]:
        """Fetch daily bars and convert them, mapping errors to provider exceptions."""
        logger.debug(f"Fetching prices for {symbol}: {start_date} to {end_date}")

        try:
            yf_ticker = yf.Ticker(symbol)

            # Yahoo Finance end date is exclusive, so add 1 day
            yahoo_end = end_date + timedelta(days=1)

            df = yf_ticker.history(
                start=start_date.isoformat(),
                end=yahoo_end.isoformat(),
                interval="1d",
                auto_adjust=False,  # Raw closes; adjusted ones rewrite past prices
                timeout=self._timeout,
            )

        except Exception as e:
            error_str = str(e).lower()

            if "not found" in error_str or "delisted" in error_str:
                raise TickerNotFoundError(asset_id=asset_id, provider=self.name, symbol=symbol)

            if "rate limit" in error_str or "too many requests" in error_str:
                raise RateLimitError(provider=self.name)

            logger.error(f"Yahoo Finance error for {symbol}: {e}")
            raise ProviderUnavailableError(
                provider=self.name,
                reason=str(e),
            )

        if df is None or df.empty:
            return []

        points = self._dataframe_to_points(asset_id, df)
        logger.debug(f"Fetched {len(points)} days for {symbol}")
        return points

    def _dataframe_to_points(self, asset_id: str, df: pd.DataFrame) -> list[PricePoint]:
        """
        Convert a yfinance DataFrame to ascending PricePoints.

        Rows with a missing or non-positive close are skipped. Each point is
        stamped at the last instant of its trading day (UTC), so a lookup
        during that day still sees the previous close.
        """
        points: list[PricePoint] = []

        for idx, row in df.iterrows():
            price_date = idx.date() if hasattr(idx, "date") else idx
            close = self._to_decimal(row.get("Close"))

            if close is None or close <= 0:
                logger.warning(f"Skipping {asset_id} on {price_date}: missing close price")
                continue

            points.append(PricePoint(
                asset_id=asset_id,
                timestamp=datetime.combine(price_date, time.max, tzinfo=timezone.utc),
                price=close,
                currency=self._currency,
            ))

        points.sort()
        return points

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value)).quantize(PRICE_QUANTUM)
        except (TypeError, ValueError):
            return None
