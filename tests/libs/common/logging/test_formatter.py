"""Tests for the JSON log formatter.

Tests verify that logs are formatted with:
- Required fields (timestamp, level, service, query_id, logger, message)
- Context taken from an explicit dict or from ``extra`` fields
- Exception information and source location
"""

import json
import logging
import sys
from datetime import UTC, datetime

import pytest

from libs.common.logging.formatter import JSONFormatter


def _record(msg: str = "Test", level: int = logging.INFO, args: tuple = ()) -> logging.LogRecord:
    return logging.LogRecord(
        name="libs.sql_gateway.materializer",
        level=level,
        pathname="/path/to/materializer.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    @pytest.fixture()
    def formatter(self) -> JSONFormatter:
        return JSONFormatter(service_name="duckdb_gateway")

    def test_basic_log_format(self, formatter: JSONFormatter) -> None:
        record = _record("Query execution completed")
        record.query_id = "query-123"

        log_dict = json.loads(formatter.format(record))

        assert log_dict["level"] == "INFO"
        assert log_dict["service"] == "duckdb_gateway"
        assert log_dict["query_id"] == "query-123"
        assert log_dict["logger"] == "libs.sql_gateway.materializer"
        assert log_dict["message"] == "Query execution completed"

    def test_timestamp_is_utc_iso8601(self, formatter: JSONFormatter) -> None:
        log_dict = json.loads(formatter.format(_record()))

        timestamp = log_dict["timestamp"]
        assert timestamp.endswith("Z")
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        assert dt.tzinfo == UTC

    def test_missing_query_id_is_null(self, formatter: JSONFormatter) -> None:
        log_dict = json.loads(formatter.format(_record()))

        assert log_dict["query_id"] is None

    def test_explicit_context_dict(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.context = {"row_count": 10, "truncated": False}

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"] == {"row_count": 10, "truncated": False}

    def test_extra_fields_become_context(self, formatter: JSONFormatter) -> None:
        logger = logging.getLogger("formatter-test")
        captured: list[logging.LogRecord] = []

        class _Capture(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                captured.append(record)

        handler = _Capture()
        logger.addHandler(handler)
        logger.propagate = False
        try:
            logger.warning("Query results truncated", extra={"row_limit": 5})
        finally:
            logger.removeHandler(handler)
            logger.propagate = True

        log_dict = json.loads(formatter.format(captured[0]))

        assert log_dict["context"] == {"row_limit": 5}

    def test_no_context_when_disabled(self) -> None:
        formatter = JSONFormatter(service_name="test", include_context=False)
        record = _record()
        record.context = {"sql_length": 12}

        log_dict = json.loads(formatter.format(record))

        assert "context" not in log_dict

    def test_exception_logging(self, formatter: JSONFormatter) -> None:
        try:
            raise ValueError("Test error")
        except ValueError:
            exc_info = sys.exc_info()

        record = _record("Error occurred", level=logging.ERROR)
        record.exc_info = exc_info

        log_dict = json.loads(formatter.format(record))

        assert log_dict["exception"]["type"] == "ValueError"
        assert log_dict["exception"]["message"] == "Test error"
        assert "ValueError" in log_dict["exception"]["traceback"]

    def test_source_location(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.funcName = "materialize_query"

        log_dict = json.loads(formatter.format(record))

        assert log_dict["source"] == {
            "file": "/path/to/materializer.py",
            "line": 42,
            "function": "materialize_query",
        }

    def test_message_with_args(self, formatter: JSONFormatter) -> None:
        record = _record("Query results truncated at %d rows", args=(100,))

        log_dict = json.loads(formatter.format(record))

        assert log_dict["message"] == "Query results truncated at 100 rows"

    def test_non_serializable_context_uses_str(self, formatter: JSONFormatter) -> None:
        record = _record()
        record.context = {"path": object()}

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"]["path"].startswith("<object object")
