"""Statement execution pipeline for the DuckDB gateway.

Order of operations for every request:
    1. Reject blank SQL.
    2. Read-only gate: write-like SQL against a read-only database is refused
       before any connection is checked out.
    3. In a worker thread: check out a pooled connection, execute, materialize.
    4. Hard timeout around the worker; on expiry the connection is interrupted.
    5. Audit log with a literal-free fingerprint of the SQL and metrics.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from typing import TypeVar

import duckdb
import sqlglot
from sqlglot import exp

from apps.duckdb_gateway.metrics import (
    pool_connections_in_use,
    readonly_rejections_total,
    statement_duration_seconds,
    statements_total,
    truncated_results_total,
)
from libs.sql_gateway.duckdb_pool import DuckDBConnectionPool
from libs.sql_gateway.errors import (
    BadRequestError,
    DatabaseQueryError,
    QueryTimeoutError,
    ReadOnlyViolationError,
    SqlGatewayError,
    TaskExecutionError,
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
from libs.sql_gateway.statement_classifier import validate_readonly_operation

logger = logging.getLogger(__name__)
_audit_logger = logging.getLogger("duckdb_gateway.audit")

T = TypeVar("T", MaterializedResult, CommandResult)

_DEFAULT_TIMEOUT_SECONDS = 30.0


def fingerprint_sql(sql: str) -> str:
    """Normalize SQL by replacing literals with placeholders for audit logs."""
    try:
        fingerprints: list[str] = []
        for parsed in sqlglot.parse(sql, read="duckdb"):
            if parsed is None:
                continue
            for literal in list(parsed.find_all(exp.Literal)):
                literal.replace(exp.Placeholder())
            fingerprints.append(parsed.sql(dialect="duckdb"))
        return "; ".join(fingerprints) or "<empty query>"
    except Exception:
        return "<unparseable query>"


class GatewayService:
    """Runs queries and commands against a pooled DuckDB database."""

    def __init__(
        self,
        pool: DuckDBConnectionPool,
        *,
        is_readonly: bool,
        row_limit_policy: RowLimitPolicy | None = None,
        query_timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.pool = pool
        self.is_readonly = is_readonly
        self.row_limit_policy = row_limit_policy or RowLimitPolicy()
        self.query_timeout_seconds = query_timeout_seconds

    async def run_query(self, sql: str, limit: int | None = None) -> MaterializedResult:
        """Execute SQL that returns rows and materialize at most the resolved limit."""
        row_limit = resolve_row_limit(limit, self.row_limit_policy)

        def _work(conn: duckdb.DuckDBPyConnection) -> MaterializedResult:
            return materialize_query(conn.execute(sql), row_limit)

        result = await self._execute("query", sql, _work)
        if result.truncated:
            truncated_results_total.inc()
        return result

    async def run_command(self, sql: str) -> CommandResult:
        """Execute SQL for effect and report the affected row count."""

        def _work(conn: duckdb.DuckDBPyConnection) -> CommandResult:
            return materialize_command(affected_row_count(conn.execute(sql)))

        return await self._execute("execute", sql, _work)

    async def _execute(
        self,
        endpoint: str,
        sql: str,
        work: Callable[[duckdb.DuckDBPyConnection], T],
    ) -> T:
        start = time.monotonic()
        try:
            self._check_sql(endpoint, sql)
            result = await self._run_blocking(work)
        except SqlGatewayError as exc:
            self._record(endpoint, sql, exc.code, None, start)
            raise
        self._record(endpoint, sql, "success", result.row_count, start)
        return result

    def _check_sql(self, endpoint: str, sql: str) -> None:
        if not sql or not sql.strip():
            raise BadRequestError("SQL cannot be empty")

        error_msg = validate_readonly_operation(sql, self.is_readonly)
        if error_msg is not None:
            readonly_rejections_total.labels(endpoint=endpoint).inc()
            raise ReadOnlyViolationError(error_msg)

    async def _run_blocking(self, work: Callable[[duckdb.DuckDBPyConnection], T]) -> T:
        """Run ``work`` on a pooled connection in a worker thread with a timeout.

        ``active`` holds the connection only while the worker has it checked
        out; it is cleared under ``guard`` before the connection goes back to
        the pool. The timeout path interrupts under the same lock.
        """
        active: list[duckdb.DuckDBPyConnection] = []
        guard = threading.Lock()

        def _run() -> T:
            with self.pool.connection() as conn:
                with guard:
                    active.append(conn)
                pool_connections_in_use.set(self.pool.in_use)
                try:
                    return work(conn)
                except duckdb.Error as exc:
                    logger.error("Statement execution failed", extra={"error": str(exc)})
                    raise DatabaseQueryError.from_engine_error(exc) from exc
                finally:
                    with guard:
                        active.clear()

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(_run), timeout=self.query_timeout_seconds
            )
        except TimeoutError:
            with guard:
                for conn in active:
                    try:
                        conn.interrupt()
                    except duckdb.Error:
                        logger.warning(
                            "duckdb_interrupt_failed",
                            extra={"timeout": self.query_timeout_seconds},
                        )
            raise QueryTimeoutError(
                f"Query exceeded the {self.query_timeout_seconds:g}s execution timeout"
            ) from None
        except SqlGatewayError:
            raise
        except Exception as exc:
            logger.error("Task execution failed", exc_info=True)
            raise TaskExecutionError("Task execution error") from exc
        finally:
            pool_connections_in_use.set(self.pool.in_use)

    def _record(
        self,
        endpoint: str,
        sql: str,
        status: str,
        row_count: int | None,
        start: float,
    ) -> None:
        elapsed = time.monotonic() - start
        statements_total.labels(endpoint=endpoint, status=status).inc()
        statement_duration_seconds.labels(endpoint=endpoint).observe(elapsed)
        _audit_logger.info(
            "sql_statement_executed",
            extra={
                "endpoint": endpoint,
                "status": status,
                "sql_fingerprint": fingerprint_sql(sql) if sql else None,
                "sql_length": len(sql) if sql else 0,
                "row_count": row_count,
                "execution_ms": int(elapsed * 1000),
                "readonly_mode": self.is_readonly,
            },
        )


__all__ = ["GatewayService", "fingerprint_sql"]
