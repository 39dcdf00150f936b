"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class GetValueResponse(BaseModel):
    """Response DTO for a successful get."""

    key: str = Field(..., description="The requested key")
    value: Any = Field(None, description="The cached or refreshed value")
    handler: str = Field(..., description="Name of the handler that owns the key")
    refreshed: bool = Field(..., description="Whether the value came from a refresh")
    lookup_time_ms: float = Field(..., description="Time taken for the get in milliseconds")


class SetValueResponse(BaseModel):
    """Response DTO for a set operation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    key: str = Field(..., description="The key that was written")
    handler: str = Field(..., description="Name of the handler used to encode the value")
    message: str = Field(..., description="Human-readable status message")


class HandlerItem(BaseModel):
    """Single registered handler (in handlers array)."""

    name: str = Field(..., description="Unique handler name")
    codec: str | None = Field(None, description="Codec family, if any")
    expiry_seconds: int | None = Field(None, description="Expiry override (0 = never expires)")
    expiry_field: str | None = Field(None, description="Timestamp field inside the value")
    allow_undefined: bool = Field(..., description="Whether a null value is a valid result")
    can_refresh: bool = Field(..., description="Whether the handler has a refresh method")
    is_fallback: bool = Field(..., description="Whether this is the fallback handler")


class HandlerListResponse(BaseModel):
    """Response DTO for listing handlers, in resolution order."""

    handlers: list[HandlerItem] = Field(default_factory=list)
    default_expiry_seconds: int = Field(..., description="Global expiry window", ge=0)
    force_pull: bool = Field(..., description="Whether refreshable values are always refreshed")


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    total_gets: int = Field(..., ge=0)
    cache_hits: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0.0, le=1.0)
    refreshes: int = Field(..., ge=0)
    refresh_failures: int = Field(..., ge=0)
    failures: int = Field(..., ge=0)
    decode_failures: int = Field(..., ge=0)
    sets: int = Field(..., ge=0)
    avg_refresh_time_ms: float = Field(..., ge=0.0)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    store_healthy: bool = Field(..., description="Whether the key/value store is reachable")


class ErrorResponse(BaseModel):
    """Error body returned inside HTTPException detail."""

    code: str
    message: str
    key: str | None = None
    details: dict[str, Any] = {}
