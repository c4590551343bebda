# portfolio_engine/services/market_data/store.py
"""
In-memory price store.

Keeps one ascending price series per asset and answers "last known price
as of" lookups in O(log n) with bisect. Thread-safe: a host may sync
prices in one thread while valuations read in others.
"""

import bisect
import logging
import threading
from datetime import datetime
from typing import Iterable

from portfolio_engine.models import PricePoint
from portfolio_engine.utils.date_utils import ensure_utc

logger = logging.getLogger(__name__)


class PriceStore:
    """
    Ordered price series per asset.

    Adding a point for a timestamp that already exists replaces the old
    price, so re-syncing a range is idempotent.
    """

    def __init__(self, points: Iterable[PricePoint] = ()) -> None:
        self._timestamps: dict[str, list[datetime]] = {}
        self._points: dict[str, list[PricePoint]] = {}
        self._lock = threading.RLock()
        self.add_many(points)

    def add(self, point: PricePoint) -> None:
        with self._lock:
            timestamps = self._timestamps.setdefault(point.asset_id, [])
            points = self._points.setdefault(point.asset_id, [])

            index = bisect.bisect_left(timestamps, point.timestamp)
            if index < len(timestamps) and timestamps[index] == point.timestamp:
                points[index] = point
                return
            timestamps.insert(index, point.timestamp)
            points.insert(index, point)

    def add_many(self, points: Iterable[PricePoint]) -> int:
        """Add several points; returns how many were given."""
        count = 0
        with self._lock:
            for point in points:
                self.add(point)
                count += 1
        return count

    def price_at_or_before(self, asset_id: str, timestamp: datetime) -> PricePoint | None:
        """Latest point at or before timestamp, or None."""
        timestamp = ensure_utc(timestamp)
        with self._lock:
            timestamps = self._timestamps.get(asset_id)
            if not timestamps:
                return None
            index = bisect.bisect_right(timestamps, timestamp)
            if index == 0:
                return None
            return self._points[asset_id][index - 1]

    def latest(self, asset_id: str) -> PricePoint | None:
        """Most recent point of an asset, or None."""
        with self._lock:
            points = self._points.get(asset_id)
            return points[-1] if points else None

    def series(self, asset_id: str) -> list[PricePoint]:
        """Copy of an asset's series, ascending."""
        with self._lock:
            return list(self._points.get(asset_id, []))

    def assets(self) -> list[str]:
        with self._lock:
            return sorted(self._points)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(points) for points in self._points.values())
