"""Structured JSON logging with per-request query IDs.

Usage:
    from fastapi import FastAPI
    from libs.common.logging import add_query_id_middleware, configure_logging

    app = FastAPI()
    add_query_id_middleware(app)
    configure_logging(service_name="duckdb_gateway", log_level="INFO")
"""

from libs.common.logging.config import (
    QueryIDFilter,
    configure_logging,
    log_with_context,
)
from libs.common.logging.context import (
    QUERY_ID_HEADER,
    clear_query_id,
    generate_query_id,
    get_or_create_query_id,
    get_query_id,
    set_query_id,
)
from libs.common.logging.formatter import JSONFormatter
from libs.common.logging.middleware import ASGIQueryIDMiddleware, add_query_id_middleware

__all__ = [
    # Configuration
    "configure_logging",
    "log_with_context",
    "QueryIDFilter",
    # Query ID management
    "QUERY_ID_HEADER",
    "clear_query_id",
    "generate_query_id",
    "get_or_create_query_id",
    "get_query_id",
    "set_query_id",
    # Middleware
    "ASGIQueryIDMiddleware",
    "add_query_id_middleware",
    # Formatter
    "JSONFormatter",
]
