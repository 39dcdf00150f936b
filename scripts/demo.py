#!/usr/bin/env python3
"""
Demo script for stash cache.

This script walks through the read-through flow with an in-memory store and
a fake upstream: cache hits, refresh on missing and stale values, force-pull,
and the failure paths.
"""

import asyncio
import time

from stash_cache import CacheCoordinator, MemoryStore, configure_logging

FAKE_USERS = {
    "1": {"name": "Bob"},
    "2": {"name": "Alice"},
}


async def fetch_user(key: str) -> dict:
    """Pretend to call a user API."""
    await asyncio.sleep(0.05)
    user_id = key.split(":", 1)[1]
    if user_id not in FAKE_USERS:
        raise LookupError(f"user {user_id} not found upstream")
    return {**FAKE_USERS[user_id], "ts": time.time()}


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def show(cache: CacheCoordinator, key: str) -> None:
    """Get a key and print the outcome."""
    start = time.time()
    result = await cache.get(key)
    duration = (time.time() - start) * 1000
    if result.error is None:
        source = "REFRESHED" if result.refreshed else "CACHE HIT"
        print(f"  {key:<12} ✓ {source:<10} {result.value}  ({duration:.1f}ms)")
    else:
        print(f"  {key:<12} ✗ {result.error.code:<18} {result.error.message}")


async def demo_basic_cache(cache: CacheCoordinator) -> None:
    """Demonstrate set, hit and refresh-on-miss."""
    print_section("Basic Read-Through")

    cache.set("user:1", {"name": "Bob", "ts": time.time()})
    print("\n📝 Stored user:1 directly")

    print("\n🔍 Reading:")
    await show(cache, "user:1")  # hit
    await show(cache, "user:2")  # miss, refreshed
    await show(cache, "user:2")  # now a hit


async def demo_expiry(cache: CacheCoordinator) -> None:
    """Demonstrate timestamp-based expiry."""
    print_section("Expiry From The Value's Own Timestamp")

    cache.set("user:1", {"name": "Bob (old)", "ts": time.time() - 3600})
    print("\n📝 Stored user:1 with a timestamp one hour old (window: 100s)")
    await show(cache, "user:1")


async def demo_force_pull(cache: CacheCoordinator) -> None:
    """Demonstrate force-pull."""
    print_section("Force Pull")

    cache.set("note:welcome", "hello")
    cache.force_pull = True
    print("\n⚡ force_pull enabled")
    await show(cache, "user:1")  # refreshable: refreshed anyway
    await show(cache, "note:welcome")  # not refreshable: served from cache
    cache.force_pull = False


async def demo_failures(cache: CacheCoordinator) -> None:
    """Demonstrate the failure paths."""
    print_section("Failures")

    print()
    await show(cache, "x:1")  # fallback handler cannot refresh
    await show(cache, "user:404")  # upstream failure


async def main() -> None:
    """Run all demos."""
    configure_logging("warning")

    print("\n🚀 Stash Cache Demo")
    print("=" * 70)

    cache = CacheCoordinator.create(store=MemoryStore())
    cache.define_handler(
        "user",
        matcher=r"^user:",
        type="json",
        expiry_seconds=100,
        expiry_field="ts",
        refresh=fetch_user,
    )
    cache.define_handler("note", matcher=r"^note:", type="text", expiry_seconds=0)

    await demo_basic_cache(cache)
    await demo_expiry(cache)
    await demo_force_pull(cache)
    await demo_failures(cache)

    print_section("Stats")
    for name, value in cache.get_stats().items():
        print(f"  {name}: {value}")

    print("\n" + "=" * 70)
    print("✅ Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    asyncio.run(main())
