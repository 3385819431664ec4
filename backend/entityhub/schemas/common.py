"""
EntityHub Backend — Pydantic Response Envelopes
=================================================

What:  Pydantic models documenting the response envelope and the list payload.
Why:   OpenAPI docs are generated from these; the response formatter builds
       bodies of exactly this shape.

Envelope:
    {
        "status": "SUCCESS" | "VALIDATION_ERROR" | "RECORD_NOT_FOUND" | "BAD_REQUEST" | "FAILURE",
        "message": "Your request is successfully executed",
        "data": {...} | [...] | null,
        "request_id": "a1b2c3d4"        (error envelopes only)
    }
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Envelope returned by every CRUD endpoint."""
    status: str = Field(description="Machine-readable outcome code")
    message: str = Field(description="Human-readable description")
    data: Any = Field(default=None, description="Action payload; null on errors")
    request_id: Optional[str] = Field(
        default=None, description="Request correlation ID (error envelopes only)"
    )


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    entities: List[str] = Field(description="Registered entity names")
    uptime_seconds: float = Field(description="Seconds since service started")
