from typing import Any

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stash_cache.api.dependencies import CoordinatorDep, HandlerDep, lifespan
from stash_cache.config import settings
from stash_cache.dto import (
    CacheStatsResponse,
    GetValueResponse,
    HandlerListResponse,
    HealthCheckResponse,
    SetValueRequest,
    SetValueResponse,
)
from stash_cache.services import CacheCoordinator

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Stash Cache API",
        "version": "0.1.0",
        "description": "Read-through key/value cache with per-handler expiry and refresh",
        "endpoints": {
            "cache": "/cache/{key}",
            "handlers": "/handlers",
            "stats": "/stats",
            "health": "/health",
            "docs": "/docs",
        },
    }


@router.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@router.get("/cache/{key:path}", response_model=GetValueResponse)
async def get_value(key: str, handler: HandlerDep) -> GetValueResponse:
    """
    Get a value, refreshing it through its handler if missing or stale.

    Args:
        key: The cache key.

    Returns:
        The value with the handler that served it and lookup time.
    """
    return await handler.get_value(key)


@router.put("/cache/{key:path}", response_model=SetValueResponse)
async def set_value(key: str, request: SetValueRequest, handler: HandlerDep) -> SetValueResponse:
    """
    Store a value under a key.

    Args:
        key: The cache key.
        request: Body holding the value.

    Returns:
        Confirmation with the handler used to encode the value.
    """
    return await handler.set_value(key, request)


@router.get("/handlers", response_model=HandlerListResponse)
async def list_handlers(handler: HandlerDep) -> HandlerListResponse:
    """List registered handlers in resolution order."""
    return await handler.list_handlers()


@router.get("/stats", response_model=CacheStatsResponse)
async def get_stats(handler: HandlerDep) -> CacheStatsResponse:
    """Get cache statistics."""
    return await handler.get_stats()


@router.post("/stats/reset", response_model=dict[str, str])
async def reset_stats(coordinator: CoordinatorDep) -> dict[str, str]:
    """Reset outcome counters."""
    coordinator.reset_stats()
    return {"message": "Cache statistics reset"}


def create_app(coordinator: CacheCoordinator | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        coordinator: A pre-configured coordinator (with its handlers
            registered). If None, the lifespan creates one from settings.

    Returns:
        The FastAPI application
    """
    app = FastAPI(
        title="Stash Cache API",
        description="Read-through key/value cache with per-handler expiry and refresh",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if coordinator is not None:
        app.state.coordinator = coordinator

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "stash_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
