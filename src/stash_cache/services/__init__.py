"""Service layer for the cache engine.

This layer contains the handler registry and the read-through coordinator.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Cache engine) -> (Key/value store)

Usage:
    ```python
    from stash_cache.services import CacheCoordinator, HandlerRegistry

    # Using factory method (recommended)
    cache = CacheCoordinator.create()

    # Or manual creation
    cache = CacheCoordinator(store=MemoryStore(), registry=HandlerRegistry())
    ```
"""

from .cache_coordinator import CacheCoordinator
from .registry import HandlerRegistry

__all__ = [
    "CacheCoordinator",
    "HandlerRegistry",
]
