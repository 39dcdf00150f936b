"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (the cache engine), not directly on stores.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Cache engine) -> (Key/value store)
"""

from .cache_handler import CacheHandler

__all__ = [
    "CacheHandler",
]
