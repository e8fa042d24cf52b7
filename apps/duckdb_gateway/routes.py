"""
FastAPI routes for the DuckDB gateway.

Endpoints:
- GET  /health          - Server status and read-only mode
- POST /query           - Execute SQL returning rows (JSON body)
- GET  /query?sql=      - Execute SQL returning rows (URL parameter)
- POST /execute         - Execute SQL for effect (JSON body)
- GET  /execute?sql=    - Execute SQL for effect (URL parameter)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from libs.common.logging import get_or_create_query_id
from libs.sql_gateway.errors import BadRequestError, PoolExhaustedError

from .schemas import HealthResponse, QueryRequest, QueryResponse
from .service import GatewayService

logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================


router = APIRouter()


# Global service instance (set by the app lifespan)
_service: GatewayService | None = None


def get_service() -> GatewayService:
    """Get the gateway service.

    Raises:
        PoolExhaustedError: If the service is not initialized (503).
    """
    if _service is None:
        raise PoolExhaustedError("Database connection pool not initialized")
    return _service


def set_service(service: GatewayService | None) -> None:
    global _service
    _service = service


ServiceDep = Annotated[GatewayService, Depends(get_service)]


# =============================================================================
# Helpers
# =============================================================================


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _require_sql(sql: str | None) -> str:
    if sql is None:
        logger.warning("Request missing SQL parameter")
        raise BadRequestError("Missing 'sql' parameter")
    return sql


async def _query(service: GatewayService, sql: str, limit: int | None) -> QueryResponse:
    start = time.monotonic()
    query_id = get_or_create_query_id()
    logger.info("Starting query execution", extra={"sql_length": len(sql), "limit": limit})

    result = await service.run_query(sql, limit)

    execution_time_ms = _elapsed_ms(start)
    logger.info(
        "Query executed successfully",
        extra={
            "execution_time_ms": execution_time_ms,
            "row_count": result.row_count,
            "truncated": result.truncated,
        },
    )
    return QueryResponse(
        success=True,
        data=result.to_dict(),
        query_id=query_id,
        execution_time_ms=execution_time_ms,
    )


async def _command(service: GatewayService, sql: str) -> QueryResponse:
    start = time.monotonic()
    query_id = get_or_create_query_id()
    logger.info("Starting command execution", extra={"sql_length": len(sql)})

    result = await service.run_command(sql)

    execution_time_ms = _elapsed_ms(start)
    logger.info(
        "Command executed successfully",
        extra={"execution_time_ms": execution_time_ms, "rows_affected": result.rows_affected},
    )
    return QueryResponse(
        success=True,
        data=result.to_dict(),
        query_id=query_id,
        execution_time_ms=execution_time_ms,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(service: ServiceDep) -> HealthResponse:
    """Health check endpoint; runs ``SELECT 1`` on a pooled connection."""
    healthy = await asyncio.to_thread(service.pool.check_health)
    if not healthy:
        logger.warning("Health check failed: database unavailable")
    database_path = service.pool.database_path
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=int(time.time()),
        database_path=str(database_path) if database_path is not None else None,
        readonly_mode=service.is_readonly,
    )


@router.post("/query", response_model=QueryResponse, tags=["query"])
async def execute_query_post(request: QueryRequest, service: ServiceDep) -> QueryResponse:
    """Execute SQL that returns rows; the body may carry a row limit."""
    return await _query(service, request.sql, request.limit)


@router.get("/query", response_model=QueryResponse, tags=["query"])
async def execute_query_get(
    service: ServiceDep,
    sql: Annotated[str | None, Query(description="SQL query to execute")] = None,
    limit: Annotated[int | None, Query(description="Maximum number of rows to return")] = None,
) -> QueryResponse:
    """Execute SQL that returns rows, passed as URL parameters."""
    return await _query(service, _require_sql(sql), limit)


@router.post("/execute", response_model=QueryResponse, tags=["execute"])
async def execute_command_post(request: QueryRequest, service: ServiceDep) -> QueryResponse:
    """Execute a command (CREATE, INSERT, ...) and report affected rows."""
    return await _command(service, request.sql)


@router.get("/execute", response_model=QueryResponse, tags=["execute"])
async def execute_command_get(
    service: ServiceDep,
    sql: Annotated[str | None, Query(description="SQL command to execute")] = None,
) -> QueryResponse:
    """Execute a command passed as a URL parameter."""
    return await _command(service, _require_sql(sql))
