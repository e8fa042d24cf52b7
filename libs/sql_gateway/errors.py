"""
Exception hierarchy for the SQL gateway.

Each exception carries a stable error ``code`` and the HTTP status the API
layer should answer with. Messages are safe to show to clients; raw engine
errors are reduced to a sanitized category before they reach a client.
"""

from __future__ import annotations

import duckdb


class SqlGatewayError(Exception):
    """
    Base exception for all gateway errors.

    Example:
        >>> try:
        ...     gateway.run_query(sql)
        ... except SqlGatewayError as e:
        ...     logger.error(f"Gateway error: {e.code}")
    """

    code: str = "INTERNAL_SERVER_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class BadRequestError(SqlGatewayError):
    """Raised when the request is missing SQL or is otherwise malformed."""

    code = "BAD_REQUEST"
    status_code = 400


class ReadOnlyViolationError(SqlGatewayError):
    """
    Raised when write-like SQL is sent to a read-only database.

    The database is never touched when this is raised.
    """

    code = "FORBIDDEN"
    status_code = 403


class DatabaseQueryError(SqlGatewayError):
    """Raised when DuckDB rejects a prepare, execute or fetch."""

    code = "DATABASE_QUERY_ERROR"
    status_code = 400

    @classmethod
    def from_engine_error(cls, exc: BaseException) -> DatabaseQueryError:
        return cls("Database query failed", details=sanitize_database_error(exc))


class PoolExhaustedError(SqlGatewayError):
    """Raised when no pooled connection frees up within the acquire timeout."""

    code = "DATABASE_POOL_ERROR"
    status_code = 503


class QueryTimeoutError(SqlGatewayError):
    """Raised when a statement exceeds the configured execution timeout."""

    code = "QUERY_TIMEOUT"
    status_code = 504


class TaskExecutionError(SqlGatewayError):
    """Raised when the worker thread running a statement fails unexpectedly."""

    code = "TASK_EXECUTION_ERROR"
    status_code = 500


def sanitize_database_error(error: BaseException) -> str:
    """Map an engine error to a generic category.

    DuckDB messages can name files, schemas and internals, so only the
    category is ever returned.
    """
    if isinstance(error, duckdb.CatalogException):
        return "Referenced table or column does not exist"
    if isinstance(error, duckdb.ParserException):
        return "SQL syntax error"
    if isinstance(error, duckdb.PermissionException):
        return "Access denied"

    text = str(error).lower()
    if "does not exist" in text:
        return "Referenced table or column does not exist"
    if "syntax error" in text or "parse" in text:
        return "SQL syntax error"
    if "permission" in text or "access" in text or "read-only" in text:
        return "Access denied"
    return "Database query failed"


__all__ = [
    "BadRequestError",
    "DatabaseQueryError",
    "PoolExhaustedError",
    "QueryTimeoutError",
    "ReadOnlyViolationError",
    "SqlGatewayError",
    "TaskExecutionError",
    "sanitize_database_error",
]
