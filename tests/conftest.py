"""Shared pytest fixtures for the stash cache test suite."""

from typing import Any

import pytest

from stash_cache import CacheCoordinator, HandlerRegistry, MemoryStore

NOW = 1_700_000_000.0


class FakeClock:
    """Settable epoch clock."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeRefresher:
    """Async refresh collaborator that records calls.

    Returns ``value`` (or ``value(key)`` if callable), or raises ``error``.
    """

    def __init__(self, value: Any = None, error: Exception | None = None) -> None:
        self.value = value
        self.error = error
        self.calls: list[str] = []

    async def __call__(self, key: str) -> Any:
        self.calls.append(key)
        if self.error is not None:
            raise self.error
        if callable(self.value):
            return self.value(key)
        return self.value


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at NOW."""
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    """An empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def registry() -> HandlerRegistry:
    """A registry with only the fallback handler."""
    return HandlerRegistry(strict_codecs=False)


@pytest.fixture
def cache(store: MemoryStore, registry: HandlerRegistry, clock: FakeClock) -> CacheCoordinator:
    """A coordinator over the in-memory store with a frozen clock."""
    return CacheCoordinator(
        store=store,
        registry=registry,
        default_expiry_seconds=3600,
        force_pull=False,
        single_flight=False,
        clock=clock,
    )
