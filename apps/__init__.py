"""
Apps package - FastAPI services.

This package contains:
- duckdb_gateway: SQL query/command REST API over DuckDB with a read-only gate
"""
