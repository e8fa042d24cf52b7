"""Bounded DuckDB connection pool.

One base connection is opened per pool; pooled connections are
``base.cursor()`` duplicates, which DuckDB backs with the same database
instance. This keeps an in-memory database shared across requests and lets a
file database be opened read-only once.

Usage:
    pool = DuckDBConnectionPool("analytics.duckdb", read_only=True, max_size=10)
    with pool.connection() as conn:
        conn.execute("SELECT 1").fetchone()
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import duckdb

from libs.sql_gateway.errors import PoolExhaustedError

logger = logging.getLogger(__name__)

_IN_MEMORY = ":memory:"


class DuckDBConnectionPool:
    """Hands out at most ``max_size`` DuckDB connections at a time."""

    def __init__(
        self,
        database_path: str | Path | None = None,
        *,
        read_only: bool = False,
        max_size: int = 10,
        acquire_timeout_seconds: float = 5.0,
        disable_external_access: bool = False,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be positive")

        self.database_path = Path(database_path) if database_path is not None else None
        # DuckDB cannot open an in-memory database read-only.
        self.read_only = read_only and self.database_path is not None
        self.max_size = max_size
        self._acquire_timeout = acquire_timeout_seconds

        config: dict[str, str | bool] = {}
        if disable_external_access:
            config["enable_external_access"] = False

        database = str(self.database_path) if self.database_path is not None else _IN_MEMORY
        logger.debug(
            "Opening DuckDB database",
            extra={"database": database, "read_only": self.read_only},
        )
        self._base = duckdb.connect(database, read_only=self.read_only, config=config)

        self._idle: queue.LifoQueue[duckdb.DuckDBPyConnection] = queue.LifoQueue()
        self._slots = threading.BoundedSemaphore(max_size)
        self._lock = threading.Lock()
        self._in_use = 0
        self._closed = False

        logger.info(
            "Database connection pool initialized",
            extra={"max_size": max_size, "read_only": self.read_only},
        )

    @property
    def in_use(self) -> int:
        return self._in_use

    @contextmanager
    def connection(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """Check out a connection; it is returned on every exit path."""
        if self._closed:
            raise PoolExhaustedError("Database connection pool is closed")
        if not self._slots.acquire(timeout=self._acquire_timeout):
            logger.warning(
                "duckdb_pool_exhausted",
                extra={"max_size": self.max_size, "timeout": self._acquire_timeout},
            )
            raise PoolExhaustedError("Database connection pool exhausted")

        conn: duckdb.DuckDBPyConnection | None = None
        try:
            conn = self._checkout()
            yield conn
        finally:
            if conn is not None:
                self._checkin(conn)
            self._slots.release()

    def _checkout(self) -> duckdb.DuckDBPyConnection:
        try:
            conn = self._idle.get_nowait()
        except queue.Empty:
            conn = self._base.cursor()
        with self._lock:
            self._in_use += 1
        return conn

    def _checkin(self, conn: duckdb.DuckDBPyConnection) -> None:
        with self._lock:
            self._in_use -= 1
        if self._closed:
            conn.close()
            return
        self._idle.put(conn)

    def check_health(self) -> bool:
        """Run ``SELECT 1`` on a pooled connection."""
        try:
            with self.connection() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except (duckdb.Error, PoolExhaustedError):
            logger.warning("duckdb_health_check_failed", exc_info=True)
            return False

    def close(self) -> None:
        self._closed = True
        while True:
            try:
                self._idle.get_nowait().close()
            except queue.Empty:
                break
        self._base.close()
        logger.info("Database connection pool closed")


__all__ = ["DuckDBConnectionPool"]
