"""Get result domain entity."""

from dataclasses import dataclass
from typing import Any

from stash_cache.errors import StashError


@dataclass(frozen=True)
class GetResult:
    """Outcome of a single ``get`` call: exactly one of success or failure.

    Attributes:
        key: The requested key
        ok: True if a value was delivered
        value: The delivered value (None on failure)
        error: The failure reason (None on success)
        refreshed: True if the value came from the refresh collaborator
    """

    key: str
    ok: bool
    value: Any = None
    error: StashError | None = None
    refreshed: bool = False

    @classmethod
    def success(cls, key: str, value: Any, refreshed: bool = False) -> "GetResult":
        return cls(key=key, ok=True, value=value, refreshed=refreshed)

    @classmethod
    def failure(cls, key: str, error: StashError) -> "GetResult":
        return cls(key=key, ok=False, error=error)

    def unwrap(self) -> Any:
        """Return the value, or raise the failure reason."""
        if self.error is not None:
            raise self.error
        return self.value
