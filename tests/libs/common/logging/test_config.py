"""Tests for logging configuration.

Tests verify:
- configure_logging installs a single JSON handler on the root logger
- QueryIDFilter stamps query IDs onto records
- log_with_context nests fields under "context"
"""

import json
import logging
from io import StringIO

import pytest

from libs.common.logging.config import (
    QueryIDFilter,
    configure_logging,
    log_with_context,
)
from libs.common.logging.context import clear_query_id, set_query_id
from libs.common.logging.formatter import JSONFormatter


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="/path/to/file.py",
        lineno=1,
        msg="Test",
        args=(),
        exc_info=None,
    )


class TestQueryIDFilter:
    """Test suite for QueryIDFilter."""

    def setup_method(self) -> None:
        clear_query_id()

    def teardown_method(self) -> None:
        clear_query_id()

    def test_filter_adds_query_id(self) -> None:
        record = _record()
        set_query_id("query-123")

        assert QueryIDFilter().filter(record) is True
        assert record.query_id == "query-123"  # type: ignore[attr-defined]

    def test_filter_adds_none_without_query_id(self) -> None:
        record = _record()

        QueryIDFilter().filter(record)

        assert record.query_id is None  # type: ignore[attr-defined]


class TestConfigureLogging:
    """Test suite for configure_logging."""

    def teardown_method(self) -> None:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(logging.WARNING)
        clear_query_id()

    def test_returns_root_logger(self) -> None:
        assert configure_logging(service_name="test") is logging.getLogger()

    @pytest.mark.parametrize(("level", "expected"), [("DEBUG", logging.DEBUG), ("info", logging.INFO)])
    def test_sets_log_level(self, level: str, expected: int) -> None:
        logger = configure_logging(service_name="test", log_level=level)

        assert logger.level == expected

    def test_invalid_level_raises_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(service_name="test", log_level="LOUD")

    def test_replaces_existing_handlers(self) -> None:
        root_logger = logging.getLogger()
        dummy_handler = logging.StreamHandler()
        root_logger.addHandler(dummy_handler)

        configure_logging(service_name="test")

        assert len(root_logger.handlers) == 1
        assert root_logger.handlers[0] is not dummy_handler
        assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)

    def test_outputs_json_with_query_id(self) -> None:
        logger = configure_logging(service_name="duckdb_gateway")
        stream = StringIO()
        handler = logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        handler.setStream(stream)

        set_query_id("query-abc")
        logging.getLogger("libs.sql_gateway").info("Query execution completed")

        log_dict = json.loads(stream.getvalue().strip())
        assert log_dict["service"] == "duckdb_gateway"
        assert log_dict["query_id"] == "query-abc"
        assert log_dict["message"] == "Query execution completed"


class TestLogWithContext:
    """Test suite for log_with_context."""

    def setup_method(self) -> None:
        self.stream = StringIO()
        self.logger = logging.getLogger("log-with-context-test")
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(JSONFormatter(service_name="test"))
        handler.addFilter(QueryIDFilter())
        self.logger.addHandler(handler)

    def teardown_method(self) -> None:
        self.logger.handlers.clear()

    def test_adds_context_fields(self) -> None:
        log_with_context(self.logger, "WARNING", "Read-only violation", sql_length=42)

        log_dict = json.loads(self.stream.getvalue().strip())

        assert log_dict["level"] == "WARNING"
        assert log_dict["context"] == {"sql_length": 42}
