"""Cache coordinator for read-through caching.

This service sequences every ``get``: read the store, decide whether the
stored value is usable, refresh it through the handler when it is not,
write the fresh value back and deliver it. Exactly one outcome (success or
failure) is produced per call.
"""

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable

import structlog

from stash_cache.config import settings
from stash_cache.entities import GetResult, Handler, HandlerDefinition, is_fresh, is_undefined
from stash_cache.errors import (
    NoRefreshMethodError,
    RefreshError,
    StashError,
    StoreError,
    UndefinedResultError,
)
from stash_cache.metrics import CacheMetrics
from stash_cache.protocols import KeyValueStore
from stash_cache.repositories import MemoryStore, RedisStore
from stash_cache.services.registry import HandlerRegistry

logger = structlog.get_logger(__name__)

SuccessCallback = Callable[[str, Any], Awaitable[None] | None]
FailureCallback = Callable[[str, StashError], Awaitable[None] | None]

# Reasons a stored value cannot be served
MISSING = "missing"
DECODE_FAILED = "decode_failed"
UNDEFINED = "undefined"
FORCED = "forced"
STALE = "stale"


class CacheCoordinator:
    """Read-through cache over a key/value store and a handler registry.

    Depends on the KeyValueStore PROTOCOL, so the backing store can be the
    in-memory store, Redis, or anything else with atomic read and write.

    Example:
        ```python
        from stash_cache.services import CacheCoordinator

        cache = CacheCoordinator.create()

        async def fetch_user(key: str) -> dict:
            return await api.get_user(key.split(":", 1)[1])

        cache.define_handler("user", matcher=r"^user:", type="json", refresh=fetch_user)

        result = await cache.get("user:1")
        if result.ok:
            print(result.value)
        ```
    """

    def __init__(
        self,
        store: KeyValueStore,
        registry: HandlerRegistry | None = None,
        default_expiry_seconds: int | None = None,
        force_pull: bool | None = None,
        single_flight: bool | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the cache coordinator.

        Args:
            store: Key/value store backend (required).
            registry: Handler registry. If None, an empty one is created.
            default_expiry_seconds: Expiry window for handlers without an
                override, 0 = never. Defaults to settings.
            force_pull: Treat every refreshable value as stale. Defaults to settings.
            single_flight: Share one in-flight refresh between concurrent
                gets for the same key. Defaults to settings.
            clock: Returns the current epoch time in seconds. Defaults to time.time.
        """
        self._store = store
        self._registry = registry if registry is not None else HandlerRegistry()
        self._default_expiry = (
            settings.default_expiry_seconds if default_expiry_seconds is None else default_expiry_seconds
        )
        self._force_pull = settings.force_pull if force_pull is None else force_pull
        self._single_flight = settings.single_flight if single_flight is None else single_flight
        self._clock = clock or time.time
        self._in_flight: dict[str, asyncio.Task[GetResult]] = {}
        self._metrics = CacheMetrics()

    @classmethod
    def create(
        cls,
        store: KeyValueStore | None = None,
        registry: HandlerRegistry | None = None,
        default_expiry_seconds: int | None = None,
        force_pull: bool | None = None,
        single_flight: bool | None = None,
    ) -> "CacheCoordinator":
        """Factory method to create a CacheCoordinator with sensible defaults.

        Args:
            store: Store backend. If None, built from settings.backend
                ("memory" or "redis").
            registry: Handler registry. If None, an empty one is created.
            default_expiry_seconds: If None, uses settings.
            force_pull: If None, uses settings.
            single_flight: If None, uses settings.

        Returns:
            Configured CacheCoordinator
        """
        if store is None:
            store = RedisStore.create() if settings.backend == "redis" else MemoryStore()

        return cls(
            store=store,
            registry=registry,
            default_expiry_seconds=default_expiry_seconds,
            force_pull=force_pull,
            single_flight=single_flight,
        )

    def define_handler(
        self,
        name: str,
        definition: HandlerDefinition | None = None,
        **fields,
    ) -> None:
        """Register or replace a handler.

        Args:
            name: Unique handler name ("none" replaces the fallback)
            definition: The handler definition, or None to build one from fields
            **fields: HandlerDefinition fields
        """
        self._registry.register(name, definition, **fields)

    def set(self, key: str, value: Any) -> None:
        """Encode a value with the key's handler and write it to the store.

        Args:
            key: The cache key
            value: The value to store

        Raises:
            UnroutableKeyError: If no handler (not even a fallback) applies
            StoreError: If the store rejects the write
        """
        handler = self._registry.resolve(key)
        raw = handler.encode_value(key, value)
        self._store.write(key, raw)
        self._metrics.record_set()
        logger.debug("cache_set", key=key, handler=handler.name)

    async def get(self, key: str) -> GetResult:
        """Get a value, refreshing it through its handler when needed.

        Business logic:
        1. Resolve the handler and read the raw value from the store
        2. Decide whether the stored value is usable
        3. If usable, deliver it without suspending
        4. Otherwise refresh, store the fresh value and deliver it

        Args:
            key: The cache key

        Returns:
            GetResult holding either the value or the failure reason
        """
        start_time = time.perf_counter()
        result = await self._get(key)

        if not result.ok:
            self._metrics.record_failure(refresh_failed=isinstance(result.error, RefreshError))
        elif result.refreshed:
            self._metrics.record_refresh((time.perf_counter() - start_time) * 1000)
        else:
            self._metrics.record_hit()
        return result

    async def _get(self, key: str) -> GetResult:
        try:
            handler = self._registry.resolve(key)
            raw = self._store.read(key)
        except StashError as e:
            return self._fail(key, e)
        except Exception as e:
            return self._fail(key, StoreError(key, "read", e))

        value, reason = self._decide(key, handler, raw)
        if reason is None:
            logger.debug("cache_hit", key=key, handler=handler.name)
            return GetResult.success(key, value)

        if not handler.can_refresh:
            if reason == UNDEFINED:
                return self._fail(key, UndefinedResultError(key, handler.name))
            return self._fail(key, NoRefreshMethodError(key, handler.name))

        logger.debug("refresh_needed", key=key, handler=handler.name, reason=reason)
        return await self._refresh(key, handler)

    def _decide(self, key: str, handler: Handler, raw: Any) -> tuple[Any, str | None]:
        """Decode a raw value and test whether it can be served.

        Returns:
            Tuple of (decoded value, None) if usable, otherwise
            (decoded value or None, reason)
        """
        if raw is None or raw == "" or raw == b"":
            return None, MISSING

        try:
            value = handler.decode_raw(key, raw)
        except Exception as e:
            # Undecodable entries are misses, never caller-visible errors
            self._metrics.record_decode_failure()
            logger.warning(
                "decode_failed",
                key=key,
                handler=handler.name,
                error=str(e),
            )
            return None, DECODE_FAILED

        if is_undefined(value) and not handler.allow_undefined:
            return None, UNDEFINED

        if self._force_pull and handler.can_refresh:
            return value, FORCED

        if not is_fresh(value, handler, self._default_expiry, self._clock()):
            return value, STALE

        return value, None

    async def _refresh(self, key: str, handler: Handler) -> GetResult:
        if not self._single_flight:
            return await self._run_refresh(key, handler)

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run_refresh(key, handler))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget_in_flight(key, done))
        else:
            logger.debug("refresh_joined", key=key, handler=handler.name)

        return await asyncio.shield(task)

    def _forget_in_flight(self, key: str, task: "asyncio.Task[GetResult]") -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _run_refresh(self, key: str, handler: Handler) -> GetResult:
        refresh = handler.refresh
        if refresh is None:
            return self._fail(key, NoRefreshMethodError(key, handler.name))

        logger.debug("refresh_started", key=key, handler=handler.name)

        try:
            value = refresh(key)
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            logger.warning("refresh_failed", key=key, handler=handler.name, error=str(e))
            return self._fail(key, RefreshError(key, handler.name, e))

        try:
            self.set(key, value)
        except StoreError as e:
            return self._fail(key, e)
        except Exception as e:
            return self._fail(key, StoreError(key, "write", e))

        logger.debug("refresh_succeeded", key=key, handler=handler.name)
        return GetResult.success(key, value, refreshed=True)

    def _fail(self, key: str, error: StashError) -> GetResult:
        logger.debug("cache_get_failed", key=key, code=error.code, reason=error.message)
        return GetResult.failure(key, error)

    async def get_with_callbacks(
        self,
        key: str,
        on_success: SuccessCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Get a value and deliver the outcome through continuations.

        Exactly one of the two callbacks is invoked, exactly once. Either
        may be a plain function or a coroutine function.

        Args:
            key: The cache key
            on_success: Called with ``(key, value)``
            on_failure: Called with ``(key, error)``
        """
        result = await self.get(key)
        if result.error is None:
            outcome = on_success(key, result.value)
        else:
            outcome = on_failure(key, result.error)

        if inspect.isawaitable(outcome):
            await outcome

    async def get_value(self, key: str) -> Any:
        """Get a value, raising the failure reason instead of returning it.

        Raises:
            StashError: NoRefreshMethodError, RefreshError,
                UndefinedResultError or StoreError
        """
        result = await self.get(key)
        return result.unwrap()

    def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with outcome counters and the active policy
        """
        stats: dict[str, Any] = dict(self._metrics.to_dict())
        stats["default_expiry_seconds"] = self._default_expiry
        stats["force_pull"] = self._force_pull
        stats["single_flight"] = self._single_flight
        stats["handlers"] = self._registry.names()
        return stats

    def reset_stats(self) -> None:
        """Reset outcome counters."""
        self._metrics = CacheMetrics()

    def is_healthy(self) -> bool:
        """Check if the backing store is reachable."""
        return self._store.health_check()

    @property
    def force_pull(self) -> bool:
        """Whether refreshable values are always treated as stale."""
        return self._force_pull

    @force_pull.setter
    def force_pull(self, value: bool) -> None:
        self._force_pull = value

    @property
    def default_expiry_seconds(self) -> int:
        """Get the global expiry window."""
        return self._default_expiry

    @property
    def registry(self) -> HandlerRegistry:
        """Get the handler registry."""
        return self._registry

    @property
    def store(self) -> KeyValueStore:
        """Get the underlying store (for testing)."""
        return self._store

    @property
    def metrics(self) -> CacheMetrics:
        """Get the outcome counters."""
        return self._metrics

    def handler_for(self, key: str) -> Handler:
        """Resolve the handler a key would use."""
        return self._registry.resolve(key)

