"""Prometheus metrics definitions for the DuckDB gateway.

Usage:
    from apps.duckdb_gateway.metrics import statements_total

    statements_total.labels(endpoint="query", status="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

statements_total = Counter(
    "duckdb_gateway_statements_total",
    "Total number of SQL statements handled",
    ["endpoint", "status"],  # endpoint: query, execute; status: success or an error code
)

readonly_rejections_total = Counter(
    "duckdb_gateway_readonly_rejections_total",
    "Write-like statements rejected by the read-only gate",
    ["endpoint"],
)

truncated_results_total = Counter(
    "duckdb_gateway_truncated_results_total",
    "Query results cut off at the row limit",
)

statement_duration_seconds = Histogram(
    "duckdb_gateway_statement_duration_seconds",
    "Wall-clock time to execute and materialize a statement",
    ["endpoint"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
)

pool_connections_in_use = Gauge(
    "duckdb_gateway_pool_connections_in_use",
    "DuckDB connections currently checked out of the pool",
)
