"""Command-line entry point: ``python -m apps.duckdb_gateway``.

Examples:
    python -m apps.duckdb_gateway                                  # In-memory database
    python -m apps.duckdb_gateway --database mydb.duckdb           # Read-only file
    python -m apps.duckdb_gateway --database mydb.duckdb --readwrite
    python -m apps.duckdb_gateway --port 8080
"""

from __future__ import annotations

import argparse
from pathlib import Path

from config.settings import Settings, get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="duckdb-gateway",
        description="A DuckDB REST server",
    )
    parser.add_argument(
        "-d",
        "--database",
        type=Path,
        default=None,
        help="DuckDB database file path (uses in-memory database if not specified)",
    )
    parser.add_argument(
        "--readwrite",
        action="store_true",
        help="Open database in read-write mode (default is read-only for file databases)",
    )
    parser.add_argument("-p", "--port", type=int, default=None, help="Server port")
    parser.add_argument("--host", default=None, help="Server host")
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    """Overlay command-line flags on environment settings."""
    base = base or get_settings()
    overrides: dict[str, object] = {}
    if args.database is not None:
        overrides["database_path"] = args.database
    if args.readwrite:
        overrides["readwrite"] = True
    if args.port is not None:
        overrides["port"] = args.port
    if args.host is not None:
        overrides["host"] = args.host
    return base.model_copy(update=overrides)


def main(argv: list[str] | None = None) -> None:
    from apps.duckdb_gateway.main import run

    args = build_parser().parse_args(argv)
    run(settings_from_args(args))


if __name__ == "__main__":
    main()
