"""HTTP handlers for cache operations.

Handlers convert between DTOs (API contracts) and coordinator calls.
They handle HTTP concerns like status codes and error bodies.
"""

import time

from fastapi import HTTPException, status

from stash_cache.dto import (
    CacheStatsResponse,
    ErrorResponse,
    GetValueResponse,
    HandlerItem,
    HandlerListResponse,
    HealthCheckResponse,
    SetValueRequest,
    SetValueResponse,
)
from stash_cache.errors import (
    NoRefreshMethodError,
    RefreshError,
    StashError,
    UndefinedResultError,
)
from stash_cache.services import CacheCoordinator

_STATUS_BY_ERROR: dict[type[StashError], int] = {
    NoRefreshMethodError: status.HTTP_404_NOT_FOUND,
    UndefinedResultError: status.HTTP_404_NOT_FOUND,
    RefreshError: status.HTTP_502_BAD_GATEWAY,
}


def error_to_http(error: StashError) -> HTTPException:
    """Convert a cache error into an HTTPException with a structured body."""
    status_code = _STATUS_BY_ERROR.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = ErrorResponse(**error.to_dict())
    return HTTPException(status_code=status_code, detail=body.model_dump())


class CacheHandler:
    """HTTP handlers for cache operations.

    This handler delegates cache logic to CacheCoordinator
    and handles HTTP-specific concerns like:
    - Converting results to DTOs
    - Mapping cache errors to status codes

    Example:
        ```python
        from stash_cache.services import CacheCoordinator
        from stash_cache.handlers import CacheHandler

        coordinator = CacheCoordinator.create()
        handler = CacheHandler(coordinator=coordinator)

        @app.get("/cache/{key}", response_model=GetValueResponse)
        async def get_value(key: str):
            return await handler.get_value(key)
        ```
    """

    def __init__(self, coordinator: CacheCoordinator) -> None:
        """Initialize the cache handler.

        Args:
            coordinator: The cache coordinator (required).
        """
        self._cache = coordinator

    async def get_value(self, key: str) -> GetValueResponse:
        """Handle GET /cache/{key} requests.

        Args:
            key: The cache key

        Returns:
            GetValueResponse with the value

        Raises:
            HTTPException: 404 if the key cannot be refreshed, 502 if the
                refresh failed, 500 for store failures
        """
        start_time = time.time()
        result = await self._cache.get(key)
        lookup_time_ms = (time.time() - start_time) * 1000

        if result.error is not None:
            raise error_to_http(result.error)

        return GetValueResponse(
            key=key,
            value=result.value,
            handler=self._cache.handler_for(key).name,
            refreshed=result.refreshed,
            lookup_time_ms=lookup_time_ms,
        )

    async def set_value(self, key: str, request: SetValueRequest) -> SetValueResponse:
        """Handle PUT /cache/{key} requests.

        Args:
            key: The cache key
            request: The set value request DTO

        Returns:
            SetValueResponse with storage confirmation

        Raises:
            HTTPException: If encoding or the store write fails
        """
        try:
            self._cache.set(key, request.value)
        except StashError as e:
            raise error_to_http(e) from e
        except (TypeError, ValueError) as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Failed to encode value: {e}",
            ) from e

        return SetValueResponse(
            success=True,
            key=key,
            handler=self._cache.handler_for(key).name,
            message="Value stored successfully",
        )

    async def list_handlers(self) -> HandlerListResponse:
        """Handle GET /handlers requests.

        Returns:
            HandlerListResponse with handlers in resolution order
        """
        registry = self._cache.registry
        fallback = registry.fallback
        items = []
        for name in registry.names():
            handler = registry.get(name)
            if handler is None:
                continue
            items.append(
                HandlerItem(
                    name=handler.name,
                    codec=handler.codec,
                    expiry_seconds=handler.expiry_seconds,
                    expiry_field=handler.expiry_field,
                    allow_undefined=handler.allow_undefined,
                    can_refresh=handler.can_refresh,
                    is_fallback=handler is fallback,
                )
            )

        return HandlerListResponse(
            handlers=items,
            default_expiry_seconds=self._cache.default_expiry_seconds,
            force_pull=self._cache.force_pull,
        )

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /stats requests.

        Returns:
            CacheStatsResponse with outcome counters
        """
        return CacheStatsResponse(**self._cache.metrics.to_dict())

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Returns:
            HealthCheckResponse with store status
        """
        is_healthy = self._cache.is_healthy()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            store_healthy=is_healthy,
        )
