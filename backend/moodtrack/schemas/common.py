"""
MoodTrack Backend — Shared Response Schemas
=============================================

Success envelope:
    {
        "success": true,
        "message": "User registered successfully",      # optional
        "data": {...} | [...],
        "pagination": {"count": 57, "offset": 20, "limit": 20}   # pages only
    }

`count` is the total number of matches, so clients know whether more pages
exist (offset + len(data) < count) without another request.

Error body:
    {"success": false, "message": "...", "error": 40002, "request_id": "a1b2c3d4"}
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class ResponsePagination(BaseModel):
    count: int = Field(description="Total number of matching items")
    offset: int = Field(description="Items skipped before this page")
    limit: int = Field(description="Maximum page size requested")


class ResponseEnvelope(BaseModel, Generic[DataT]):
    success: bool = True
    message: Optional[str] = None
    data: DataT
    pagination: Optional[ResponsePagination] = None

    @classmethod
    def ok(cls, data: Any, message: Optional[str] = None) -> "ResponseEnvelope":
        return cls(data=data, message=message)

    @classmethod
    def page(cls, data: Any, count: int, offset: int, limit: int) -> "ResponseEnvelope":
        return cls(
            data=data,
            pagination=ResponsePagination(count=count, offset=offset, limit=limit),
        )


class ErrorResponse(BaseModel):
    """Standardized error response format for all API errors."""

    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")
    error: int = Field(description="Stable numeric error code")
    details: Optional[Any] = Field(default=None, description="Field-level validation details")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    music_service: str = Field(description="Music provider breaker state: available, circuit_open")
    uptime_seconds: float = Field(description="Seconds since service started")
