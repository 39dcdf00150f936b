"""Request DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class SetValueRequest(BaseModel):
    """Request DTO for storing a value under a key.

    The value is encoded by the key's handler before it reaches the store.
    """

    value: Any = Field(..., description="The value to cache (any JSON value)")
