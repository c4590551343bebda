# portfolio_engine/utils/__init__.py
"""
Cross-cutting utilities for the valuation engine.

- logging: Host logging setup with correlation ID support
- context: Calculation context (correlation IDs)
- date_utils: UTC timestamp parsing and calendar helpers

Usage:
    from portfolio_engine.utils import setup_logging, get_logger
    from portfolio_engine.utils import calculation_context, get_correlation_id
    from portfolio_engine.utils.date_utils import parse_timestamp
"""

from portfolio_engine.utils.context import (
    calculation_context,
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from portfolio_engine.utils.logging import setup_logging, get_logger

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "calculation_context",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
