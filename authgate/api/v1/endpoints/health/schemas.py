"""Health check API schemas."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Basic health check response schema."""

    status: str = Field(
        ...,
        description="Service health status",
        examples=["healthy"]
    )
    timestamp: str = Field(
        ...,
        description="Response timestamp",
        examples=["2026-01-01T12:00:00Z"]
    )


class ReadinessResponse(BaseModel):
    """Readiness check response schema."""

    ready: bool = Field(
        ...,
        description="Whether service is ready to accept requests",
        examples=[True]
    )
    checks: Dict[str, Any] = Field(
        ...,
        description="Individual readiness checks",
        examples=[{"database": {"status": "ready", "latency_ms": 5.2}}]
    )
