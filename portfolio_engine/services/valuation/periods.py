# portfolio_engine/services/valuation/periods.py
"""
Named periods and their time windows.

A period is a relative window ending "now": 1m, 3m, 1y, or all. "all"
starts at a far-past sentinel (settings.all_period_start).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from portfolio_engine.config import settings
from portfolio_engine.services.constants import PERIOD_ALL, PERIOD_MONTHS
from portfolio_engine.services.exceptions import InvalidPeriodError
from portfolio_engine.utils.date_utils import ensure_utc, subtract_months, utc_now


class Period(str, enum.Enum):
    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    ONE_YEAR = "1y"
    ALL = PERIOD_ALL

    @classmethod
    def parse(cls, value: Period | str) -> Period:
        """
        Convert a period name to a Period.

        Raises:
            InvalidPeriodError: If the name is not a known period
        """
        if isinstance(value, Period):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidPeriodError(str(value)) from None


@dataclass(frozen=True)
class Window:
    """Closed time window [start, end], aware UTC."""

    start: datetime
    end: datetime

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp <= self.end


def resolve_window(period: Period | str, now: datetime | None = None) -> Window:
    """
    Map a period to its (start, end = now) window.

    Months are calendar months with the day clamped, so 1m from March 31
    starts on the last day of February.

    Raises:
        InvalidPeriodError: If the period is unknown
    """
    period = Period.parse(period)
    end = ensure_utc(now) if now is not None else utc_now()

    if period == Period.ALL:
        start = min(settings.all_period_start, end)
    else:
        start = subtract_months(end, PERIOD_MONTHS[period.value])

    return Window(start=start, end=end)
