"""
Request/Response schemas for the DuckDB gateway API.

Defines Pydantic models for API validation and serialization.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# =============================================================================
# Request Models
# =============================================================================


class QueryRequest(BaseModel):
    """Body for POST /query and POST /execute."""

    sql: str = Field(..., description="SQL to execute")
    limit: int | None = Field(
        None, description="Maximum number of rows to return (clamped to the server maximum)"
    )

    model_config = {
        "json_schema_extra": {"example": {"sql": "SELECT * FROM users", "limit": 100}}
    }


# =============================================================================
# Response Models
# =============================================================================


class QueryResponse(BaseModel):
    """Envelope for successful query and command responses."""

    success: bool = Field(..., description="Whether the statement succeeded")
    data: dict[str, Any] | None = Field(None, description="Materialized result")
    error: str | None = Field(None, description="Error message, if any")
    query_id: str = Field(..., description="Unique identifier for this request")
    execution_time_ms: int = Field(..., description="Execution time in milliseconds")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "data": {
                    "columns": ["id"],
                    "column_types": ["INTEGER"],
                    "rows": [[1]],
                    "row_count": 1,
                    "limit_applied": 10000,
                },
                "error": None,
                "query_id": "123e4567-e89b-12d3-a456-426614174000",
                "execution_time_ms": 42,
            }
        }
    }


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str = Field(..., description="Server status")
    timestamp: int = Field(..., description="Unix timestamp")
    database_path: str | None = Field(None, description="Database file, if not in-memory")
    readonly_mode: bool = Field(..., description="Whether the database is read-only")


class ErrorDetail(BaseModel):
    """Structured error information."""

    code: str = Field(..., description="Stable error code")
    message: str = Field(..., description="Client-safe message")
    details: str | None = Field(None, description="Sanitized detail")


class ErrorResponse(BaseModel):
    """Envelope for every failed request."""

    success: bool = False
    error: ErrorDetail
    query_id: str | None = None
    timestamp: int
