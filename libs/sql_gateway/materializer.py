"""Bounded, typed materialization of DuckDB results.

``materialize_query`` walks a cursor forward exactly once and stops at the row
limit, so peak memory is bounded by the limit rather than by the size of the
underlying result. ``materialize_command`` produces the acknowledgement shape
used for statements executed only for effect.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

from libs.sql_gateway.value_conversion import convert_to_json

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 10_000
MAX_ROW_LIMIT = 100_000

_TYPE_PARAMS_RE = re.compile(r"\(.*\)$")


class QueryCursor(Protocol):
    """DB-API style cursor as returned by ``DuckDBPyConnection.execute``."""

    @property
    def description(self) -> list[tuple[Any, ...]] | None: ...

    def fetchone(self) -> tuple[Any, ...] | None: ...


@dataclass(frozen=True)
class RowLimitPolicy:
    """Default and ceiling applied to caller-supplied row limits."""

    default_row_limit: int = DEFAULT_ROW_LIMIT
    max_row_limit: int = MAX_ROW_LIMIT

    def __post_init__(self) -> None:
        if self.max_row_limit < 1:
            raise ValueError("max_row_limit must be positive")
        if not 1 <= self.default_row_limit <= self.max_row_limit:
            raise ValueError("default_row_limit must be between 1 and max_row_limit")


def resolve_row_limit(requested: int | None, policy: RowLimitPolicy) -> int:
    """Default an absent limit and clamp a given one into [1, max_row_limit]."""
    if requested is None:
        return policy.default_row_limit
    return max(1, min(requested, policy.max_row_limit))


@dataclass
class MaterializedResult:
    """Rows of a query capped at ``limit_applied``."""

    column_names: list[str]
    column_types: list[str]
    rows: list[list[Any]]
    limit_applied: int
    truncated: bool = False
    message: str | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "columns": self.column_names,
            "column_types": self.column_types,
            "rows": self.rows,
            "row_count": self.row_count,
            "limit_applied": self.limit_applied,
        }
        if self.truncated:
            payload["truncated"] = True
            payload["message"] = self.message
        return payload


@dataclass
class CommandResult:
    """Acknowledgement for a statement run for effect; never carries rows."""

    rows_affected: int
    rows: list[list[Any]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return 0

    def to_dict(self) -> dict[str, Any]:
        return {"rows": [], "row_count": 0, "rows_affected": self.rows_affected}


def truncation_message(limit: int) -> str:
    return (
        f"Results truncated to {limit} rows. "
        "Use limit parameter or streaming for larger datasets."
    )


def sql_type_name(type_code: Any) -> str:
    """Uppercased engine type name without parameters.

    ``DECIMAL(10,2)`` reports as ``DECIMAL`` and ``INTEGER[]`` as ``LIST``.
    """
    type_id = getattr(type_code, "id", None)
    name = str(type_id) if type_id else str(type_code)
    name = _TYPE_PARAMS_RE.sub("", name.strip())
    if name.endswith("[]"):
        return "LIST"
    return name.upper() or "UNKNOWN"


def _column_names(description: list[tuple[Any, ...]], column_count: int) -> list[str]:
    names: list[str] = []
    for index in range(column_count):
        try:
            name = description[index][0]
        except (IndexError, TypeError):
            name = None
        names.append(str(name) if name is not None else f"column_{index}")
    return names


def _column_types(description: list[tuple[Any, ...]], column_count: int) -> list[str]:
    types: list[str] = []
    for index in range(column_count):
        try:
            types.append(sql_type_name(description[index][1]))
        except (IndexError, TypeError):
            types.append("UNKNOWN")
    return types


def materialize_query(cursor: QueryCursor, row_limit: int) -> MaterializedResult:
    """Consume at most ``row_limit`` rows from ``cursor`` into a typed result.

    The row after the limit is fetched only to learn that the result was
    truncated; it is never converted or stored.
    """
    if row_limit < 1:
        raise ValueError("row_limit must be positive")

    description = list(cursor.description or [])
    rows: list[list[Any]] = []
    detected_column_count = 0
    truncated = False

    while True:
        raw_row = cursor.fetchone()
        if raw_row is None:
            break
        if len(rows) >= row_limit:
            truncated = True
            logger.warning("Query results truncated at %d rows", row_limit)
            break
        if detected_column_count == 0:
            detected_column_count = len(raw_row)
        rows.append([convert_to_json(cell) for cell in raw_row])

    column_count = detected_column_count or len(description)

    result = MaterializedResult(
        column_names=_column_names(description, column_count),
        column_types=_column_types(description, column_count),
        rows=rows,
        limit_applied=row_limit,
        truncated=truncated,
        message=truncation_message(row_limit) if truncated else None,
    )

    logger.info(
        "Query execution completed",
        extra={
            "row_count": result.row_count,
            "column_count": column_count,
            "truncated": truncated,
        },
    )
    return result


def affected_row_count(cursor: QueryCursor) -> int:
    """Read DuckDB's affected-row count from an executed statement.

    DML returns a single ``Count`` column; DDL returns no result set. Any
    other result set, such as a trailing SELECT, affected no rows.
    """
    description = cursor.description
    if not description or len(description) != 1 or description[0][0] != "Count":
        return 0
    row = cursor.fetchone()
    if not row or not isinstance(row[0], int) or isinstance(row[0], bool):
        return 0
    return row[0]


def materialize_command(rows_affected: int) -> CommandResult:
    logger.info("Command execution completed", extra={"rows_affected": rows_affected})
    return CommandResult(rows_affected=rows_affected)


__all__ = [
    "DEFAULT_ROW_LIMIT",
    "MAX_ROW_LIMIT",
    "CommandResult",
    "MaterializedResult",
    "QueryCursor",
    "RowLimitPolicy",
    "affected_row_count",
    "materialize_command",
    "materialize_query",
    "resolve_row_limit",
    "sql_type_name",
    "truncation_message",
]
