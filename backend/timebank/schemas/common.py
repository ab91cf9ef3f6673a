"""
TimeBank Backend — Shared Response Schemas
===========================================

Envelope models used by every endpoint. Successful mutations return
`{"success": true, ...}`; every failure returns ErrorResponse.
"""

from typing import Optional

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Plain acknowledgement of a successful mutation."""
    success: bool = Field(default=True)
    message: Optional[str] = Field(default=None, description="Human-readable confirmation")


class ErrorResponse(BaseModel):
    """
    The single error format for all API errors.

    Example:
        {
            "success": false,
            "error": "unauthorized",
            "message": "Unauthorized access",
            "details": {"resource": "service", "resource_id": "12"},
            "request_id": "1f2e3d4c"
        }
    """
    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Upload directory: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")


class GenerateDescriptionRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)


class GenerateDescriptionResponse(BaseModel):
    success: bool = Field(default=True)
    description: str
