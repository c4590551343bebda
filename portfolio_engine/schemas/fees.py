# portfolio_engine/schemas/fees.py
"""
Pydantic schemas for fee metrics.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_engine.schemas.performance import round_money


class FeePointSchema(BaseModel):
    """Fees charged on one day."""

    model_config = ConfigDict(from_attributes=True)

    day: dt.date = Field(..., description="UTC day")
    fees: Decimal = Field(..., description="Fees charged that day")

    @field_validator("fees")
    @classmethod
    def round_fees(cls, v: Decimal) -> Decimal:
        return round_money(v)


class FeeSummaryResponse(BaseModel):
    """Fee metrics for a period."""

    model_config = ConfigDict(from_attributes=True)

    total_fees: Decimal = Field(..., description="Sum of all fees charged")
    average_fee: Decimal = Field(..., description="Average fee per charged transaction")
    transaction_count: int = Field(..., description="Transactions that charged a fee")
    fees_by_kind: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Fees per transaction kind"
    )
    time_series: list[FeePointSchema] = Field(
        default_factory=list,
        description="Fees per day, ascending"
    )
    excluded_transaction_count: int = Field(
        default=0,
        description="Transactions excluded because their timestamp could not be parsed"
    )

    @field_validator("total_fees", "average_fee")
    @classmethod
    def round_amounts(cls, v: Decimal) -> Decimal:
        return round_money(v)

    @field_validator("fees_by_kind")
    @classmethod
    def round_breakdown(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        return {kind: round_money(amount) for kind, amount in v.items()}
