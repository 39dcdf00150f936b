"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import SetValueRequest
from .responses import (
    CacheStatsResponse,
    ErrorResponse,
    GetValueResponse,
    HandlerItem,
    HandlerListResponse,
    HealthCheckResponse,
    SetValueResponse,
)

__all__ = [
    "SetValueRequest",
    "GetValueResponse",
    "SetValueResponse",
    "HandlerItem",
    "HandlerListResponse",
    "CacheStatsResponse",
    "HealthCheckResponse",
    "ErrorResponse",
]
