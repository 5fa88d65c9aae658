"""
BoxIT Backend — Shared API Schemas
===================================

Error payload, plain message replies and the health report.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every failure.

    Example:
        {
            "error": "not_found",
            "message": "Box not found",
            "details": null,
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error kind")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable outcome")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connection status")
    storage: str = Field(description="Image storage backend status")
    uptime_seconds: float = Field(description="Seconds since the process started")
