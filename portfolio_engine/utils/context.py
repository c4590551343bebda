# portfolio_engine/utils/context.py
"""
Calculation context management.

Every Aggregator entry point runs inside a calculation context carrying a
correlation ID, so all log lines of one valuation request can be traced
together even when several requests run concurrently.

Uses Python's contextvars for storage that is isolated per thread and per
asyncio task.

Usage:
    from portfolio_engine.utils.context import calculation_context, get_correlation_id

    # A host may set its own request ID first
    set_correlation_id("abc-123")

    with calculation_context() as correlation_id:
        ...  # correlation_id == "abc-123"
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


# =============================================================================
# CORRELATION ID
# =============================================================================

def get_correlation_id() -> str | None:
    """
    Get the current correlation ID.

    Returns:
        The correlation ID of the running calculation, or None if not set.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current context.

    Hosts call this with their own request ID so engine logs line up with
    the rest of their request logs.

    Args:
        correlation_id: Unique identifier for this request
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID."""
    _correlation_id_var.set(None)


@contextmanager
def calculation_context() -> Iterator[str]:
    """
    Run a block under a correlation ID.

    Reuses the ID already set by the host; otherwise assigns a fresh one
    for the duration of the block and restores the previous value after.

    Yields:
        The correlation ID in effect inside the block
    """
    existing = _correlation_id_var.get()
    if existing is not None:
        yield existing
        return

    token = _correlation_id_var.set(uuid.uuid4().hex)
    try:
        yield _correlation_id_var.get()
    finally:
        _correlation_id_var.reset(token)
