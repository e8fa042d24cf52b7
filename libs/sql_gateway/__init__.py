"""SQL gateway core: write-operation gate and bounded result materializer."""

from libs.sql_gateway.errors import (
    BadRequestError,
    DatabaseQueryError,
    PoolExhaustedError,
    QueryTimeoutError,
    ReadOnlyViolationError,
    SqlGatewayError,
    TaskExecutionError,
    sanitize_database_error,
)
from libs.sql_gateway.materializer import (
    CommandResult,
    MaterializedResult,
    RowLimitPolicy,
    affected_row_count,
    materialize_command,
    materialize_query,
    resolve_row_limit,
)
from libs.sql_gateway.statement_classifier import (
    StatementIntent,
    classify,
    is_write_operation,
    validate_readonly_operation,
)
from libs.sql_gateway.value_conversion import TypedValue, ValueKind, convert

__all__ = [
    # Classifier
    "StatementIntent",
    "classify",
    "is_write_operation",
    "validate_readonly_operation",
    # Materializer
    "CommandResult",
    "MaterializedResult",
    "RowLimitPolicy",
    "affected_row_count",
    "materialize_command",
    "materialize_query",
    "resolve_row_limit",
    # Values
    "TypedValue",
    "ValueKind",
    "convert",
    # Errors
    "BadRequestError",
    "DatabaseQueryError",
    "PoolExhaustedError",
    "QueryTimeoutError",
    "ReadOnlyViolationError",
    "SqlGatewayError",
    "TaskExecutionError",
    "sanitize_database_error",
]
