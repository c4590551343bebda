# portfolio_engine/schemas/__init__.py
"""
Pydantic schemas for serializing engine results.

- performance: Time series, account/global summaries, asset summaries
- fees: Fee metrics

Usage:
    from portfolio_engine.schemas import PerformanceSummaryResponse

    payload = PerformanceSummaryResponse.model_validate(summary).model_dump(mode="json")
"""

from portfolio_engine.schemas.fees import FeePointSchema, FeeSummaryResponse
from portfolio_engine.schemas.performance import (
    AssetPerformanceResponse,
    PerformancePointSchema,
    PerformanceSummaryResponse,
)

__all__ = [
    # Performance
    "PerformancePointSchema",
    "PerformanceSummaryResponse",
    "AssetPerformanceResponse",
    # Fees
    "FeePointSchema",
    "FeeSummaryResponse",
]
