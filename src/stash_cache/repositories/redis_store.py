"""Redis implementation of KeyValueStore.

Stores each cache entry as a plain Redis string under an optional key
prefix. Expiry is decided by the cache engine from the values themselves,
so no Redis TTL is set.
"""

from typing import Any

import redis
import structlog

from stash_cache.config import get_redis_client, settings
from stash_cache.errors import StoreError

logger = structlog.get_logger(__name__)


class RedisStore:
    """Redis-backed key/value store.

    This class satisfies the KeyValueStore protocol through structural
    typing - no explicit inheritance needed.

    Raw values come back from Redis as bytes and are decoded as UTF-8
    before being handed to a handler's decode function. Client errors are
    wrapped in StoreError.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
    ) -> None:
        """Initialize the Redis store.

        Args:
            redis_client: Redis client instance. If None, creates default.
            key_prefix: Prefix prepended to every cache key. Defaults to settings.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = settings.key_prefix if key_prefix is None else key_prefix

    @classmethod
    def create(
        cls,
        redis_client: redis.Redis | None = None,
        key_prefix: str | None = None,
    ) -> "RedisStore":
        """Factory method to create RedisStore with defaults.

        Args:
            redis_client: Redis client. If None, built from settings.
            key_prefix: Key prefix. If None, uses settings.

        Returns:
            Configured RedisStore
        """
        return cls(redis_client=redis_client, key_prefix=key_prefix)

    def _full_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def read(self, key: str) -> Any | None:
        """Read the raw value for a key.

        Args:
            key: The cache key (without prefix)

        Returns:
            The stored string, or None if absent

        Raises:
            StoreError: If Redis is unreachable or rejects the command
        """
        try:
            raw = self._client.get(self._full_key(key))
        except redis.RedisError as e:
            raise StoreError(key, "read", e) from e

        if isinstance(raw, bytes):
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError:
                # Let the handler's decoder reject it
                return raw
        return raw

    def write(self, key: str, raw: Any) -> None:
        """Write a raw value for a key.

        Args:
            key: The cache key (without prefix)
            raw: The encoded value (str, bytes, int or float)

        Raises:
            StoreError: If Redis is unreachable or rejects the value
        """
        try:
            self._client.set(self._full_key(key), raw)
        except redis.RedisError as e:
            raise StoreError(key, "write", e) from e
        logger.debug("store_write", key=key, backend="redis")

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            result = self._client.ping()
            return bool(result)
        except redis.RedisError:
            return False

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
