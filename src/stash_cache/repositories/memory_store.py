"""In-memory implementation of KeyValueStore.

Dict-backed store for tests and single-process use. Values are kept as
given; nothing is copied or serialized beyond what the handler's encode
function produces.
"""

from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class MemoryStore:
    """Dict-backed key/value store.

    Satisfies the KeyValueStore protocol through structural typing.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def read(self, key: str) -> Any | None:
        return self._data.get(key)

    def write(self, key: str, raw: Any) -> None:
        self._data[key] = raw
        logger.debug("store_write", key=key, backend="memory")

    def health_check(self) -> bool:
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
