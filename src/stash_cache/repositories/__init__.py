"""Repository layer for data access.

This layer provides the key/value stores the cache engine reads from and
writes to. The stores are protocol-based (structural typing), not
inheritance-based. Any class implementing the required methods will
satisfy the KeyValueStore protocol.
"""

from stash_cache.protocols import KeyValueStore

from .memory_store import MemoryStore
from .redis_store import RedisStore

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
]
