"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Coordinator and handler stored in app.state during lifespan
    - A host application may pre-seed app.state.coordinator with its own
      handlers (refresh functions cannot be configured from the environment)
    - Dependency functions retrieve from request.app.state
"""

from contextlib import asynccontextmanager
from typing import Annotated

import structlog
from fastapi import Depends, FastAPI, Request

from stash_cache.config import settings
from stash_cache.handlers import CacheHandler
from stash_cache.logging_config import configure_logging
from stash_cache.services import CacheCoordinator

logger = structlog.get_logger(__name__)


def get_coordinator(request: Request) -> CacheCoordinator:
    """Dependency injection for CacheCoordinator from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CacheCoordinator instance from app.state

    Raises:
        RuntimeError: If the coordinator is not initialized
    """
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise RuntimeError("CacheCoordinator not initialized. Check lifespan setup.")
    return coordinator


def get_handler(request: Request) -> CacheHandler:
    """Dependency injection for CacheHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CacheHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "cache_handler", None)
    if handler is None:
        raise RuntimeError("CacheHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Coordinator (cache engine) - reused if already on app.state,
       otherwise created from settings
    2. Handler (HTTP endpoints) - stored in app.state.cache_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Removes the handler, and the coordinator if the lifespan created it
    """
    configure_logging(settings.effective_log_level, settings.log_json)

    coordinator = getattr(app.state, "coordinator", None)
    owns_coordinator = coordinator is None
    if coordinator is None:
        coordinator = CacheCoordinator.create()
        app.state.coordinator = coordinator

    app.state.cache_handler = CacheHandler(coordinator=coordinator)

    logger.info(
        "cache_service_started",
        backend=type(coordinator.store).__name__,
        handlers=coordinator.registry.names(),
        default_expiry_seconds=coordinator.default_expiry_seconds,
        force_pull=coordinator.force_pull,
        healthy=coordinator.is_healthy(),
    )

    yield

    del app.state.cache_handler
    if owns_coordinator:
        del app.state.coordinator
    logger.info("cache_service_stopped")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[CacheHandler, Depends(get_handler)]
CoordinatorDep = Annotated[CacheCoordinator, Depends(get_coordinator)]
