# tests/utils/test_logging.py
"""
Tests for host logging setup.
"""

import json
import logging
from decimal import Decimal

import pytest

from portfolio_engine.utils.context import clear_correlation_id, set_correlation_id
from portfolio_engine.utils.logging import (
    NO_CORRELATION_ID,
    CorrelationIdFilter,
    JsonFormatter,
    get_logger,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back as pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message="hello", **extra):
    record = logging.LogRecord(
        name="portfolio_engine.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationIdFilter:
    def test_adds_current_id(self):
        set_correlation_id("req-42")
        try:
            record = make_record()
            CorrelationIdFilter().filter(record)
        finally:
            clear_correlation_id()

        assert record.correlation_id == "req-42"

    def test_placeholder_without_id(self):
        clear_correlation_id()
        record = make_record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == NO_CORRELATION_ID


class TestJsonFormatter:
    def test_basic_fields(self):
        record = make_record("Sell exceeds holding", correlation_id="abc")

        payload = json.loads(JsonFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "portfolio_engine.test"
        assert payload["correlation_id"] == "abc"
        assert payload["message"] == "Sell exceeds holding"

    def test_non_json_extra_is_stringified(self):
        record = make_record(correlation_id="abc", amount=Decimal("1.50"))

        payload = json.loads(JsonFormatter().format(record))

        assert payload["extra"]["amount"] == "1.50"


class TestSetupLogging:
    def test_installs_single_handler(self, restore_root_logger):
        setup_logging(level="DEBUG", log_format="json")
        setup_logging(level="WARNING", log_format="text")

        assert len(restore_root_logger.handlers) == 1
        assert restore_root_logger.level == logging.WARNING

    def test_json_format(self, restore_root_logger):
        setup_logging(level="INFO", log_format="json")
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_quiets_noisy_loggers(self, restore_root_logger):
        setup_logging(level="DEBUG")
        assert logging.getLogger("yfinance").level == logging.WARNING

    def test_invalid_level(self, restore_root_logger):
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging(level="LOUD")

    def test_get_logger(self):
        assert get_logger("portfolio_engine.x") is logging.getLogger("portfolio_engine.x")
