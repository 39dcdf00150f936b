"""Stash Cache - read-through key/value caching with pluggable handlers.

This package provides a layered architecture for read-through caching:

Layers:
    - protocols: Interface contracts (KeyValueStore, Refresher)
    - repositories: Key/value store implementations (memory, Redis)
    - services: Cache engine (HandlerRegistry, CacheCoordinator)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from stash_cache import CacheCoordinator

    cache = CacheCoordinator.create()
    cache.define_handler("user", matcher=r"^user:", type="json", refresh=fetch_user)

    cache.set("user:1", {"name": "Bob"})
    result = await cache.get("user:1")
    ```

For HTTP API:
    ```python
    from stash_cache.api.app import create_app

    app = create_app(coordinator=cache)
    ```
"""

from stash_cache.codecs import Codec, CodecType, codec_for
from stash_cache.config import Settings, get_redis_client, settings
from stash_cache.entities import FALLBACK_HANDLER_NAME, GetResult, Handler, HandlerDefinition
from stash_cache.errors import (
    DecodeError,
    InvalidHandlerError,
    NoRefreshMethodError,
    RefreshError,
    StashError,
    StoreError,
    UndefinedResultError,
    UnknownCodecError,
    UnroutableKeyError,
)
from stash_cache.logging_config import configure_logging
from stash_cache.protocols import KeyValueStore, Refresher
from stash_cache.repositories import MemoryStore, RedisStore
from stash_cache.services import CacheCoordinator, HandlerRegistry

__all__ = [
    # Configuration
    "Settings",
    "settings",
    "get_redis_client",
    "configure_logging",
    # Protocols (interfaces)
    "KeyValueStore",
    "Refresher",
    # Services (cache engine)
    "CacheCoordinator",
    "HandlerRegistry",
    # Repositories (stores)
    "MemoryStore",
    "RedisStore",
    # Entities (domain models)
    "FALLBACK_HANDLER_NAME",
    "GetResult",
    "Handler",
    "HandlerDefinition",
    # Codecs
    "Codec",
    "CodecType",
    "codec_for",
    # Errors
    "StashError",
    "UnroutableKeyError",
    "DecodeError",
    "NoRefreshMethodError",
    "RefreshError",
    "UndefinedResultError",
    "StoreError",
    "UnknownCodecError",
    "InvalidHandlerError",
]
