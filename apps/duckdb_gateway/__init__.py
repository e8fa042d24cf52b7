"""DuckDB Gateway - REST API over an embedded DuckDB database."""

__version__ = "1.0.0"
