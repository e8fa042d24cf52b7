"""Logging setup for the gateway.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="duckdb_gateway", log_level="INFO")
    >>> logger.info("Service started", extra={"context": {"port": 3001}})
"""

import logging
import sys

from libs.common.logging.context import get_query_id
from libs.common.logging.formatter import JSONFormatter


class QueryIDFilter(logging.Filter):
    """Stamps the current query ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.query_id = get_query_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Route all logging through a single JSON stdout handler.

    Call once at startup. Existing root handlers are replaced.

    Args:
        service_name: Name reported in the "service" field
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include extra fields in output

    Returns:
        Configured root logger

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter(service_name=service_name, include_context=include_context))
    handler.addFilter(QueryIDFilter())
    root_logger.addHandler(handler)

    return root_logger


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context_fields: object,
) -> None:
    """Log ``message`` with ``context_fields`` under the "context" key.

    Example:
        >>> log_with_context(logger, "WARNING", "Read-only violation", sql_length=42)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra={"context": context_fields})
