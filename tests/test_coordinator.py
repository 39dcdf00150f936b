"""
Tests for the read-through cache coordinator.
"""

import asyncio
import json

import pytest
from conftest import NOW, FakeRefresher

from stash_cache import (
    CacheCoordinator,
    GetResult,
    HandlerRegistry,
    MemoryStore,
    NoRefreshMethodError,
    RefreshError,
    StoreError,
    UndefinedResultError,
    UnroutableKeyError,
)


class FailingWriteStore(MemoryStore):
    """Memory store whose writes always fail."""

    def write(self, key, raw):
        raise StoreError(key, "write", ConnectionError("store offline"))


class BrokenReadStore(MemoryStore):
    """Memory store whose reads raise a non-cache exception."""

    def read(self, key):
        raise OSError("disk gone")


class TestScenarios:
    """End-to-end get/set scenarios."""

    @pytest.mark.asyncio
    async def test_set_then_get_delivers_without_refresh(self, cache):
        """A freshly set value is served without touching the refresher."""
        refresher = FakeRefresher(value={"name": "Fresh"})
        cache.define_handler("user", matcher=r"^user:", type="json", expiry_seconds=100, refresh=refresher)

        cache.set("user:1", {"name": "Bob"})
        result = await cache.get("user:1")

        assert result.ok
        assert result.value == {"name": "Bob"}
        assert not result.refreshed
        assert refresher.calls == []

    @pytest.mark.asyncio
    async def test_unregistered_key_fails_with_no_refresh_method(self, cache):
        """The fallback handler cannot refresh, so a miss fails."""
        result = await cache.get("x:1")

        assert not result.ok
        assert isinstance(result.error, NoRefreshMethodError)
        assert result.error.key == "x:1"
        assert "no refresh method" in result.error.message
        assert result.error.details == {"handler": "none"}

    @pytest.mark.asyncio
    async def test_stale_value_is_refreshed_and_stored(self, cache, clock):
        """A value older than its window is refreshed, stored and delivered."""
        refresher = FakeRefresher(value=lambda key: {"ts": clock.now})
        cache.define_handler(
            "stamped",
            matcher=r"^stamped:",
            type="json",
            expiry_field="ts",
            expiry_seconds=10,
            refresh=refresher,
        )
        cache.set("stamped:1", {"ts": NOW - 20})

        result = await cache.get("stamped:1")

        assert result.ok
        assert result.refreshed
        assert result.value == {"ts": NOW}
        assert refresher.calls == ["stamped:1"]
        assert json.loads(cache.store.read("stamped:1")) == {"ts": NOW}

    @pytest.mark.asyncio
    async def test_refresh_failure_leaves_store_unchanged(self, cache):
        """A failing refresher surfaces RefreshError with its cause."""
        cause = ConnectionError("upstream down")
        cache.define_handler(
            "stamped",
            matcher=r"^stamped:",
            type="json",
            expiry_field="ts",
            expiry_seconds=10,
            refresh=FakeRefresher(error=cause),
        )
        cache.set("stamped:1", {"ts": NOW - 20})
        before = cache.store.read("stamped:1")

        result = await cache.get("stamped:1")

        assert not result.ok
        assert isinstance(result.error, RefreshError)
        assert result.error.key == "stamped:1"
        assert result.error.__cause__ is cause
        assert "ConnectionError" in result.error.details["cause"]
        assert cache.store.read("stamped:1") == before

    @pytest.mark.asyncio
    async def test_missing_value_is_refreshed(self, cache):
        """A miss on a refreshable key fetches and stores the value."""
        refresher = FakeRefresher(value={"name": "Alice"})
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=refresher)

        first = await cache.get("user:2")
        second = await cache.get("user:2")

        assert first.ok and first.refreshed
        assert second.ok and not second.refreshed
        assert second.value == {"name": "Alice"}
        assert refresher.calls == ["user:2"]


class TestExpiryPolicy:
    """Staleness and force-pull decisions."""

    @pytest.mark.asyncio
    async def test_zero_expiry_never_refreshes(self, cache):
        """With expiry 0, timestamps of any age are usable."""
        refresher = FakeRefresher(value={"ts": NOW})
        cache.define_handler(
            "forever", matcher=r"^forever:", type="json", expiry_field="ts", expiry_seconds=0, refresh=refresher
        )
        cache.set("forever:1", {"ts": 0})

        result = await cache.get("forever:1")

        assert result.ok
        assert result.value == {"ts": 0}
        assert refresher.calls == []

    @pytest.mark.asyncio
    async def test_default_expiry_applies_without_override(self, store, clock):
        """Handlers without an override use the global window."""
        cache = CacheCoordinator(store=store, default_expiry_seconds=50, force_pull=False, clock=clock)
        refresher = FakeRefresher(value={"ts": NOW})
        cache.define_handler("s", matcher=r"^s:", type="json", expiry_field="ts", refresh=refresher)

        cache.set("s:fresh", {"ts": NOW - 30})
        cache.set("s:stale", {"ts": NOW - 60})

        assert not (await cache.get("s:fresh")).refreshed
        assert (await cache.get("s:stale")).refreshed
        assert refresher.calls == ["s:stale"]

    @pytest.mark.asyncio
    async def test_value_without_expiry_field_is_fresh(self, cache):
        """Handlers without expiry_field treat stored values as fresh."""
        refresher = FakeRefresher(value="new")
        cache.define_handler("note", matcher=r"^note:", type="text", expiry_seconds=1, refresh=refresher)
        cache.set("note:1", "old")

        result = await cache.get("note:1")

        assert result.value == "old"
        assert refresher.calls == []

    @pytest.mark.asyncio
    async def test_stale_without_refresh_fails(self, cache):
        """A stale value on a non-refreshable handler is a failure."""
        cache.define_handler("s", matcher=r"^s:", type="json", expiry_field="ts", expiry_seconds=10)
        cache.set("s:1", {"ts": NOW - 20})

        result = await cache.get("s:1")

        assert isinstance(result.error, NoRefreshMethodError)

    @pytest.mark.asyncio
    async def test_force_pull_refreshes_refreshable_handlers(self, cache):
        """force_pull refreshes even immediately after a set."""
        refresher = FakeRefresher(value={"name": "Pulled"})
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=refresher)
        cache.set("user:1", {"name": "Bob"})
        cache.force_pull = True

        result = await cache.get("user:1")

        assert result.refreshed
        assert result.value == {"name": "Pulled"}
        assert refresher.calls == ["user:1"]

    @pytest.mark.asyncio
    async def test_force_pull_serves_cache_without_refresh(self, cache):
        """force_pull is moot for handlers that cannot refresh."""
        cache.define_handler("note", matcher=r"^note:", type="text")
        cache.set("note:1", "kept")
        cache.set("x:1", "fallback value")
        cache.force_pull = True

        note = await cache.get("note:1")
        other = await cache.get("x:1")

        assert note.ok and note.value == "kept"
        assert other.ok and other.value == "fallback value"


class TestUndefinedAndDecode:
    """Undefined values and decode failures."""

    @pytest.mark.asyncio
    async def test_decode_failure_falls_through_to_refresh(self, clock):
        """Undecodable entries are misses, not caller-visible errors."""
        store = MemoryStore({"user:1": "{not json"})
        cache = CacheCoordinator(store=store, force_pull=False, clock=clock)
        refresher = FakeRefresher(value={"name": "Bob"})
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=refresher)

        result = await cache.get("user:1")

        assert result.ok and result.refreshed
        assert result.value == {"name": "Bob"}
        assert cache.metrics.decode_failures == 1

    @pytest.mark.asyncio
    async def test_decode_failure_without_refresh_is_no_refresh_method(self, clock):
        """Decode failure behaves like a miss on the failure path too."""
        cache = CacheCoordinator(store=MemoryStore({"user:1": "{not json"}), force_pull=False, clock=clock)
        cache.define_handler("user", matcher=r"^user:", type="json")

        result = await cache.get("user:1")

        assert isinstance(result.error, NoRefreshMethodError)

    @pytest.mark.asyncio
    async def test_custom_decoder_exception_is_a_miss(self, clock):
        """Any exception from a custom decoder is absorbed."""

        def explode(key, raw):
            raise KeyError("bad layout")

        cache = CacheCoordinator(store=MemoryStore({"c:1": "raw"}), force_pull=False, clock=clock)
        cache.define_handler("c", matcher=r"^c:", decode=explode, refresh=FakeRefresher(value="ok"))

        result = await cache.get("c:1")

        assert result.ok and result.value == "ok"

    @pytest.mark.asyncio
    async def test_empty_raw_is_a_miss(self, clock):
        """An empty stored string counts as no value."""
        cache = CacheCoordinator(store=MemoryStore({"note:1": ""}), force_pull=False, clock=clock)
        refresher = FakeRefresher(value="filled")
        cache.define_handler("note", matcher=r"^note:", type="text", refresh=refresher)

        result = await cache.get("note:1")

        assert result.refreshed
        assert refresher.calls == ["note:1"]

    @pytest.mark.asyncio
    async def test_undefined_value_refreshes_when_disallowed(self, clock):
        """A decoded null triggers a refresh by default."""
        cache = CacheCoordinator(store=MemoryStore({"user:1": "null"}), force_pull=False, clock=clock)
        refresher = FakeRefresher(value={"name": "Bob"})
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=refresher)

        result = await cache.get("user:1")

        assert result.refreshed
        assert result.value == {"name": "Bob"}

    @pytest.mark.asyncio
    async def test_undefined_value_without_refresh_fails(self, clock):
        """Disallowed null with no refresh is an UndefinedResultError."""
        cache = CacheCoordinator(store=MemoryStore({"user:1": "null"}), force_pull=False, clock=clock)
        cache.define_handler("user", matcher=r"^user:", type="json")

        result = await cache.get("user:1")

        assert isinstance(result.error, UndefinedResultError)

    @pytest.mark.asyncio
    async def test_empty_decoded_value_refreshes_when_disallowed(self, clock):
        """A decoded empty string is undefined, so it is refreshed."""
        store = MemoryStore({"user:1": json.dumps("")})
        cache = CacheCoordinator(store=store, force_pull=False, clock=clock)
        refresher = FakeRefresher(value={"name": "Bob"})
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=refresher)

        result = await cache.get("user:1")

        assert refresher.calls == ["user:1"]
        assert result.refreshed
        assert result.value == {"name": "Bob"}
        assert json.loads(store.read("user:1")) == {"name": "Bob"}

    @pytest.mark.asyncio
    async def test_empty_decoded_value_without_refresh_fails(self, clock):
        """A decoded empty string with no refresh is an UndefinedResultError."""
        cache = CacheCoordinator(store=MemoryStore({"user:1": json.dumps("")}), force_pull=False, clock=clock)
        cache.define_handler("user", matcher=r"^user:", type="json")

        result = await cache.get("user:1")

        assert not result.ok
        assert isinstance(result.error, UndefinedResultError)

    @pytest.mark.asyncio
    async def test_empty_decoded_value_allowed(self, clock):
        """allow_undefined also accepts a decoded empty string."""
        cache = CacheCoordinator(store=MemoryStore({"user:1": json.dumps("")}), force_pull=False, clock=clock)
        refresher = FakeRefresher(value={"name": "Bob"})
        cache.define_handler("user", matcher=r"^user:", type="json", allow_undefined=True, refresh=refresher)

        result = await cache.get("user:1")

        assert result.ok
        assert result.value == ""
        assert refresher.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["0", "false", "[]", "{}"])
    async def test_falsy_decoded_values_are_hits(self, clock, raw):
        """Zero, false and empty containers are real values."""
        cache = CacheCoordinator(store=MemoryStore({"user:1": raw}), force_pull=False, clock=clock)
        refresher = FakeRefresher(value={"name": "Bob"})
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=refresher)

        result = await cache.get("user:1")

        assert result.ok and not result.refreshed
        assert result.value == json.loads(raw)
        assert refresher.calls == []

    @pytest.mark.asyncio
    async def test_undefined_value_allowed(self, clock):
        """allow_undefined makes a decoded null a valid result."""
        cache = CacheCoordinator(store=MemoryStore({"user:1": "null"}), force_pull=False, clock=clock)
        refresher = FakeRefresher(value={"name": "Bob"})
        cache.define_handler("user", matcher=r"^user:", type="json", allow_undefined=True, refresh=refresher)

        result = await cache.get("user:1")

        assert result.ok
        assert result.value is None
        assert refresher.calls == []

    @pytest.mark.asyncio
    async def test_refresh_result_is_not_gated_by_allow_undefined(self, cache):
        """A refresh producing None is still stored and delivered."""
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=FakeRefresher(value=None))

        result = await cache.get("user:9")

        assert result.ok
        assert result.value is None
        assert cache.store.read("user:9") == "null"


class TestSetAndStore:
    """set() and store failures."""

    def test_set_encodes_with_handler(self, cache):
        """set() encodes through the resolved handler."""
        cache.define_handler("user", matcher=r"^user:", type="json")
        cache.set("user:1", {"name": "Bob"})
        cache.set("plain", {"kept": "as is"})

        assert cache.store.read("user:1") == '{"name": "Bob"}'
        assert cache.store.read("plain") == {"kept": "as is"}

    def test_set_is_idempotent(self, cache):
        """Repeated set with the same value gives the same stored state."""
        cache.define_handler("user", matcher=r"^user:", type="json")
        cache.set("user:1", {"name": "Bob"})
        first = cache.store.read("user:1")
        cache.set("user:1", {"name": "Bob"})

        assert cache.store.read("user:1") == first
        assert len(cache.store) == 1

    def test_set_propagates_store_errors(self, clock):
        """Store failures raise from set()."""
        cache = CacheCoordinator(store=FailingWriteStore(), clock=clock)

        with pytest.raises(StoreError):
            cache.set("k", "v")

    @pytest.mark.asyncio
    async def test_store_failure_after_refresh_is_a_failure(self, clock):
        """A failed write after refresh is surfaced, not raised."""
        cache = CacheCoordinator(store=FailingWriteStore(), force_pull=False, clock=clock)
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=FakeRefresher(value={"a": 1}))

        result = await cache.get("user:1")

        assert not result.ok
        assert isinstance(result.error, StoreError)
        assert result.error.details["operation"] == "write"

    @pytest.mark.asyncio
    async def test_unencodable_refresh_result_is_a_store_failure(self, cache):
        """Encoding errors during the store step become StoreError."""
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=FakeRefresher(value={1, 2}))

        result = await cache.get("user:1")

        assert isinstance(result.error, StoreError)
        assert isinstance(result.error.__cause__, TypeError)

    @pytest.mark.asyncio
    async def test_store_read_failure_is_a_failure(self, clock):
        """Read errors from the store surface as StoreError."""
        cache = CacheCoordinator(store=BrokenReadStore(), force_pull=False, clock=clock)

        result = await cache.get("k")

        assert isinstance(result.error, StoreError)
        assert result.error.details["operation"] == "read"

    @pytest.mark.asyncio
    async def test_unroutable_key(self, cache, registry):
        """Without a fallback, get fails and set raises."""
        registry._fallback = None

        result = await cache.get("x:1")
        assert isinstance(result.error, UnroutableKeyError)

        with pytest.raises(UnroutableKeyError):
            cache.set("x:1", "v")


class TestCallerSurfaces:
    """Continuations, get_value and refresher kinds."""

    @pytest.mark.asyncio
    async def test_callbacks_success_invoked_once(self, cache):
        """Only the success continuation runs, exactly once."""
        successes, failures = [], []
        cache.set("x:1", "value")

        await cache.get_with_callbacks(
            "x:1",
            lambda key, value: successes.append((key, value)),
            lambda key, error: failures.append((key, error)),
        )

        assert successes == [("x:1", "value")]
        assert failures == []

    @pytest.mark.asyncio
    async def test_callbacks_failure_invoked_once(self, cache):
        """Only the failure continuation runs, exactly once."""
        successes, failures = [], []

        await cache.get_with_callbacks(
            "x:1",
            lambda key, value: successes.append((key, value)),
            lambda key, error: failures.append((key, error)),
        )

        assert successes == []
        assert len(failures) == 1
        assert failures[0][0] == "x:1"
        assert isinstance(failures[0][1], NoRefreshMethodError)

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self, cache):
        """Coroutine continuations are awaited."""
        seen = []

        async def on_success(key, value):
            await asyncio.sleep(0)
            seen.append(value)

        async def on_failure(key, error):
            seen.append(error)

        cache.set("x:1", "value")
        await cache.get_with_callbacks("x:1", on_success, on_failure)

        assert seen == ["value"]

    @pytest.mark.asyncio
    async def test_get_value_raises_failure(self, cache):
        """get_value returns values and raises failure reasons."""
        cache.set("x:1", "value")

        assert await cache.get_value("x:1") == "value"
        with pytest.raises(NoRefreshMethodError):
            await cache.get_value("x:2")

    def test_result_unwrap(self):
        """unwrap raises the carried error and returns even a None value."""
        error = NoRefreshMethodError("x:1", "none")

        with pytest.raises(NoRefreshMethodError) as exc_info:
            GetResult.failure("x:1", error).unwrap()

        assert exc_info.value is error
        assert GetResult.success("x:1", None).unwrap() is None

    @pytest.mark.asyncio
    async def test_sync_refresher_is_accepted(self, cache):
        """Plain functions work as refreshers."""
        cache.define_handler("n", matcher=r"^n:", type="text", refresh=lambda key: key.upper())

        result = await cache.get("n:abc")

        assert result.value == "N:ABC"
        assert cache.store.read("n:abc") == "N:ABC"


class TestConcurrency:
    """Concurrent refreshes for the same key."""

    @staticmethod
    def _slow_refresher():
        calls = []

        async def refresh(key):
            calls.append(key)
            await asyncio.sleep(0.01)
            return {"key": key}

        return refresh, calls

    @pytest.mark.asyncio
    async def test_concurrent_misses_each_refresh_by_default(self, store, clock):
        """Without single-flight, both callers refresh."""
        cache = CacheCoordinator(store=store, force_pull=False, single_flight=False, clock=clock)
        refresh, calls = self._slow_refresher()
        cache.define_handler("k", matcher=r"^k:", type="json", refresh=refresh)

        results = await asyncio.gather(cache.get("k:1"), cache.get("k:1"))

        assert all(r.ok for r in results)
        assert calls == ["k:1", "k:1"]

    @pytest.mark.asyncio
    async def test_single_flight_shares_refresh(self, store, clock):
        """With single-flight, concurrent callers share one refresh."""
        cache = CacheCoordinator(store=store, force_pull=False, single_flight=True, clock=clock)
        refresh, calls = self._slow_refresher()
        cache.define_handler("k", matcher=r"^k:", type="json", refresh=refresh)

        results = await asyncio.gather(cache.get("k:1"), cache.get("k:1"), cache.get("k:2"))

        assert [r.value for r in results] == [{"key": "k:1"}, {"key": "k:1"}, {"key": "k:2"}]
        assert sorted(calls) == ["k:1", "k:2"]

        # The in-flight entry is released once done
        await cache.get("k:1")
        assert sorted(calls) == ["k:1", "k:2"]
        assert cache._in_flight == {}

    @pytest.mark.asyncio
    async def test_single_flight_shares_failure(self, store, clock):
        """All joined callers see the same refresh failure."""
        cache = CacheCoordinator(store=store, force_pull=False, single_flight=True, clock=clock)
        refresher = FakeRefresher(error=RuntimeError("boom"))
        cache.define_handler("k", matcher=r"^k:", refresh=refresher)

        results = await asyncio.gather(cache.get("k:1"), cache.get("k:1"))

        assert all(isinstance(r.error, RefreshError) for r in results)
        assert len(refresher.calls) == 1


class TestStats:
    """Outcome counters."""

    @pytest.mark.asyncio
    async def test_stats_track_outcomes(self, cache):
        """Hits, refreshes and failures are counted per get."""
        cache.define_handler("user", matcher=r"^user:", type="json", refresh=FakeRefresher(value={"a": 1}))
        cache.define_handler("bad", matcher=r"^bad:", refresh=FakeRefresher(error=RuntimeError("x")))

        await cache.get("user:1")  # refresh
        await cache.get("user:1")  # hit
        await cache.get("bad:1")  # refresh failure
        await cache.get("x:1")  # no refresh method

        stats = cache.get_stats()
        assert stats["total_gets"] == 4
        assert stats["cache_hits"] == 1
        assert stats["refreshes"] == 1
        assert stats["failures"] == 2
        assert stats["refresh_failures"] == 1
        assert stats["sets"] == 1
        assert stats["hit_rate"] == 0.25
        assert stats["handlers"] == ["user", "bad", "none"]

        cache.reset_stats()
        assert cache.get_stats()["total_gets"] == 0


def test_create_with_explicit_store():
    """The factory wires a given store and registry."""
    store = MemoryStore()
    registry = HandlerRegistry(strict_codecs=False)

    cache = CacheCoordinator.create(store=store, registry=registry, default_expiry_seconds=5, force_pull=True)

    assert cache.store is store
    assert cache.registry is registry
    assert cache.default_expiry_seconds == 5
    assert cache.force_pull is True
    assert cache.is_healthy()
