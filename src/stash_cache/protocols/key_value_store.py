"""Key/value store protocol.

Defines the interface for the persistent store the cache reads from and
writes to. Keys and values are opaque: the store imposes no schema and the
cache only interprets raw values through a handler's decode function.

Implementations can include:
- In-memory dict (tests, single process)
- Redis (default for deployments)
- Any other store offering atomic single-key read and write
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for raw key/value storage backends.

    Any type that implements these methods satisfies the protocol,
    no explicit inheritance needed.

    Example:
        ```python
        from stash_cache.protocols import KeyValueStore

        store: KeyValueStore = MemoryStore()
        store: KeyValueStore = RedisStore.create()
        ```
    """

    def read(self, key: str) -> Any | None:
        """Read the raw value stored under a key.

        Args:
            key: The cache key

        Returns:
            The raw stored value, or None if absent
        """
        ...

    def write(self, key: str, raw: Any) -> None:
        """Write a raw value under a key, replacing any previous value.

        Args:
            key: The cache key
            raw: The encoded value

        Raises:
            StoreError: If the backend rejects the write
        """
        ...

    def health_check(self) -> bool:
        """Check if the store is accessible.

        Returns:
            True if healthy, False otherwise
        """
        ...
