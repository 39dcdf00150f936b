"""Protocol interfaces for swappable collaborators.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of storage backends (in-memory → Redis, etc.)
- Unit testing with fake stores and refresh functions
- Clear separation between the cache engine and its collaborators

Usage:
    ```python
    from stash_cache.protocols import KeyValueStore, Refresher

    store: KeyValueStore = MemoryStore()
    store: KeyValueStore = RedisStore.create()
    ```
"""

from .key_value_store import KeyValueStore
from .refresher import Refresher

__all__ = [
    "KeyValueStore",
    "Refresher",
]
