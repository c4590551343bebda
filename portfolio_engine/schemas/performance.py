# portfolio_engine/schemas/performance.py
"""
Pydantic schemas for performance results.

These schemas serialize the engine's dataclasses for a host API layer:
- Time series points
- Account / global performance summaries
- Single-asset performance

Build them with model_validate(summary); from_attributes reads the
dataclass fields directly. Money is rounded to 0.01, percentages to 0.01,
prices to 8 decimals. The engine itself never rounds.
"""

import datetime as dt
from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_engine.services.constants import MONEY_QUANTUM, PERCENT_QUANTUM, PRICE_QUANTUM


def round_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


# =============================================================================
# TIME SERIES
# =============================================================================

class PerformancePointSchema(BaseModel):
    """A single checkpoint of the value chart."""

    model_config = ConfigDict(from_attributes=True)

    timestamp: dt.datetime = Field(
        ...,
        description="Checkpoint time (UTC)"
    )
    value: Decimal = Field(
        ...,
        description="Market value of open holdings at the checkpoint"
    )
    invested: Decimal = Field(
        ...,
        description="Open cost basis at the checkpoint"
    )
    is_stale: bool = Field(
        default=False,
        description="True if a substitute price (current price or average cost) was used"
    )

    @field_validator("value", "invested")
    @classmethod
    def round_amounts(cls, v: Decimal) -> Decimal:
        return round_money(v)


# =============================================================================
# SUMMARIES
# =============================================================================

class PerformanceSummaryResponse(BaseModel):
    """Performance of one account, or of all accounts, over a period."""

    model_config = ConfigDict(from_attributes=True)

    total_value: Decimal = Field(
        ...,
        description="Market value of open holdings"
    )
    total_invested: Decimal = Field(
        ...,
        description="Cost basis still open"
    )
    cash_balance: Decimal = Field(
        ...,
        description=(
            "Running cash balance over the ENTIRE history "
            "(deposits - withdrawals - buys + sells + dividends + interest - fees). "
            "Unlike every other figure it ignores the requested period."
        )
    )
    total_fees: Decimal = Field(
        ...,
        description="Fees charged within the period"
    )
    realized_gains: Decimal = Field(
        ...,
        description="Sale gains + dividends + interest - fees within the period"
    )
    unrealized_gains: Decimal = Field(
        ...,
        description="total_value - total_invested"
    )
    performance_pct: Decimal = Field(
        ...,
        description="Performance in percent, net of fees"
    )
    time_series: list[PerformancePointSchema] = Field(
        default_factory=list,
        description="Value/invested checkpoints across the period"
    )
    has_stale_prices: bool = Field(
        default=False,
        description="True if any valuation used a stale or substitute price"
    )
    stale_assets: list[str] = Field(
        default_factory=list,
        description="Assets valued with a stale or substitute price"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Data quality warnings (over-sells, excluded records, stale prices)"
    )
    oversell_count: int = Field(
        default=0,
        description="Sells that exceeded the held quantity and were clamped"
    )
    excluded_transaction_count: int = Field(
        default=0,
        description="Transactions excluded because their timestamp could not be parsed"
    )

    @field_validator(
        "total_value",
        "total_invested",
        "cash_balance",
        "total_fees",
        "realized_gains",
        "unrealized_gains",
    )
    @classmethod
    def round_amounts(cls, v: Decimal) -> Decimal:
        return round_money(v)

    @field_validator("performance_pct")
    @classmethod
    def round_percentage(cls, v: Decimal) -> Decimal:
        return v.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


class AssetPerformanceResponse(PerformanceSummaryResponse):
    """Performance of a single asset across all accounts."""

    asset_id: str = Field(
        ...,
        description="Asset identifier (ISIN, ticker...)"
    )
    name: str | None = Field(
        default=None,
        description="Asset display name (None if unknown)"
    )
    current_price: Decimal | None = Field(
        default=None,
        description="Current price (None if unavailable)"
    )
    total_quantity: Decimal = Field(
        ...,
        description="Units held across all accounts"
    )

    @field_validator("current_price")
    @classmethod
    def round_price(cls, v: Decimal | None) -> Decimal | None:
        if v is None:
            return None
        return v.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
