"""
Quotes API — Shared Response Schemas
======================================

What:  The uniform response envelope and the camelCase base model.
How:   Every route declares `response_model=ApiResponse[...]` with
       `response_model_exclude_none=True`, so `data` and `error` disappear
       when empty. Exception handlers dump the same model for error bodies.

Envelope:
    {
        "statusCode": 201,
        "message": "Quote created successfully",
        "data": {...},          # optional
        "error": "..."          # optional, diagnostics on failures
    }
"""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Python attributes in snake_case, JSON keys in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope shared by every endpoint, success or failure."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode", description="HTTP status code")
    message: str = Field(description="Human-readable outcome")
    data: Optional[T] = Field(default=None, description="Payload, when there is one")
    error: Optional[str] = Field(default=None, description="Diagnostic detail on failures")


def envelope(status_code: int, message: str, error: Optional[str] = None) -> Dict[str, Any]:
    """JSON-ready error/empty envelope for handlers that bypass response_model."""
    return ApiResponse(status_code=status_code, message=message, error=error).model_dump(
        by_alias=True, exclude_none=True
    )


class HealthStatus(CamelModel):
    """Payload of GET /health."""

    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected or disconnected")
    quote_backend: str = Field(description="file or database")
    quote_count: Optional[int] = Field(default=None, description="Stored quotes, if readable")
    uptime_seconds: float = Field(description="Seconds since the module loaded")
