"""
FastAPI application for the DuckDB gateway.

This service provides REST API endpoints for:
- Running SQL queries with bounded, typed JSON results
- Running SQL commands (DDL/DML) and reporting affected rows
- Health and Prometheus metrics

A database file is opened read-only unless explicitly configured read-write;
in read-only mode write-like SQL is rejected before it reaches DuckDB.

Configuration via environment variables (see config/settings.py):
- DUCKDB_GATEWAY_DATABASE_PATH: DuckDB file (in-memory when unset)
- DUCKDB_GATEWAY_READWRITE: Open the file read-write

Example:
    Start the service:
        $ python -m apps.duckdb_gateway --database analytics.duckdb --port 3001
        $ uvicorn --factory apps.duckdb_gateway.main:create_app --port 3001

    Run a query:
        $ curl -X POST http://localhost:3001/query \\
            -H "Content-Type: application/json" \\
            -d '{"sql": "SELECT 42 AS answer", "limit": 10}'
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import make_asgi_app

from config.settings import Settings, get_settings
from libs.common.logging import add_query_id_middleware, configure_logging, get_query_id
from libs.sql_gateway.duckdb_pool import DuckDBConnectionPool
from libs.sql_gateway.errors import SqlGatewayError
from libs.sql_gateway.materializer import RowLimitPolicy

from .routes import router, set_service
from .schemas import ErrorDetail, ErrorResponse
from .service import GatewayService

logger = logging.getLogger(__name__)


# =============================================================================
# Service Wiring
# =============================================================================


def build_service(settings: Settings) -> GatewayService:
    """Open the connection pool and wrap it in a GatewayService."""
    if settings.database_path is not None:
        mode = "read-only" if settings.is_readonly else "read-write"
        logger.info(f"Opening database file: {settings.database_path} ({mode})")
    else:
        logger.info("Using in-memory database (read-write)")

    pool = DuckDBConnectionPool(
        settings.database_path,
        read_only=settings.is_readonly,
        max_size=settings.pool_max_size,
        acquire_timeout_seconds=settings.pool_acquire_timeout_seconds,
        disable_external_access=settings.disable_external_access,
    )
    return GatewayService(
        pool,
        is_readonly=settings.is_readonly,
        row_limit_policy=RowLimitPolicy(
            default_row_limit=settings.default_row_limit,
            max_row_limit=settings.max_row_limit,
        ),
        query_timeout_seconds=settings.query_timeout_seconds,
    )


# =============================================================================
# Error Responses
# =============================================================================


def error_response(
    status_code: int, code: str, message: str, details: str | None = None
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        query_id=get_query_id(),
        timestamp=int(time.time()),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def gateway_error_handler(request: Request, exc: SqlGatewayError) -> JSONResponse:
    """Map gateway errors to the structured error envelope."""
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        f"Request failed on {request.method} {request.url.path}",
        extra={"code": exc.code, "status_code": exc.status_code},
    )
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies and parameters."""
    fields = sorted({".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()})
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "BAD_REQUEST",
        "Invalid request",
        details=f"Invalid fields: {', '.join(fields)}" if fields else None,
    )


async def catch_unhandled_errors(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Turn unexpected errors into the 500 envelope.

    Runs inside the query ID middleware so the response still carries
    ``X-Query-ID``.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}",
            exc_info=exc,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_SERVER_ERROR",
            "Internal server error",
        )


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    settings: Settings | None = None,
    *,
    service: GatewayService | None = None,
) -> FastAPI:
    """Create the gateway application.

    Args:
        settings: Settings to use; defaults to the cached environment settings.
        service: Pre-built service to serve (tests inject one with a forced
            read-only flag). Its pool is not closed on shutdown.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = service is None
        gateway = service if service is not None else build_service(settings)
        set_service(gateway)

        logger.info("=" * 60)
        logger.info("DuckDB Gateway Ready!")
        logger.info(f"  - Read-only: {gateway.is_readonly}")
        logger.info(f"  - Pool size: {gateway.pool.max_size}")
        logger.info(
            f"  - Row limits: default={gateway.row_limit_policy.default_row_limit} "
            f"max={gateway.row_limit_policy.max_row_limit}"
        )
        logger.info("=" * 60)

        try:
            yield
        finally:
            logger.info("DuckDB Gateway shutting down...")
            set_service(None)
            if owned:
                gateway.pool.close()

    app = FastAPI(
        title="DuckDB Gateway",
        description="REST API for executing SQL queries and commands against DuckDB",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.middleware("http")(catch_unhandled_errors)
    add_query_id_middleware(app)

    app.add_exception_handler(SqlGatewayError, gateway_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_error_handler  # type: ignore[arg-type]
    )

    app.include_router(router)
    app.mount("/metrics", make_asgi_app())

    @app.get("/", tags=["root"])
    async def root() -> dict[str, Any]:
        """Root endpoint with service information."""
        return {
            "service": "DuckDB Gateway",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "endpoints": ["/query", "/execute"],
        }

    return app


def run(settings: Settings) -> None:
    """Configure logging and serve ``settings`` with uvicorn."""
    import uvicorn

    configure_logging(service_name=settings.service_name, log_level=settings.log_level)
    logger.info(f"DuckDB gateway starting on http://{settings.host}:{settings.port}")
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
