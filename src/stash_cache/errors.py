"""Error taxonomy for the stash cache.

Decode errors are absorbed by the coordinator and treated as cache misses.
Routing, refresh, undefined-result and store errors are surfaced to the
caller's failure path.
"""

from typing import Any


class StashError(Exception):
    """Base exception for stash cache errors."""

    code = "STASH_ERROR"

    def __init__(self, message: str, key: str | None = None, details: dict[str, Any] | None = None):
        self.message = message
        self.key = key
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable error body."""
        return {
            "code": self.code,
            "message": self.message,
            "key": self.key,
            "details": self.details,
        }


class UnroutableKeyError(StashError):
    """No handler matched the key and no fallback handler is configured."""

    code = "UNROUTABLE_KEY"

    def __init__(self, key: str):
        super().__init__(f"no handler (and no fallback) for key {key!r}", key=key)


class DecodeError(StashError):
    """Stored raw data could not be decoded."""

    code = "DECODE_FAILURE"

    def __init__(self, key: str, reason: str):
        super().__init__(f"cannot decode stored value for key {key!r}: {reason}", key=key)


class NoRefreshMethodError(StashError):
    """The resolved handler has no way to refresh a missing or stale value."""

    code = "NO_REFRESH_METHOD"

    def __init__(self, key: str, handler_name: str):
        super().__init__(
            f"cannot refresh key {key!r}: no refresh method for handler {handler_name!r}",
            key=key,
            details={"handler": handler_name},
        )


class RefreshError(StashError):
    """The refresh collaborator reported a failure.

    The original exception is chained as ``__cause__``.
    """

    code = "REFRESH_FAILURE"

    def __init__(self, key: str, handler_name: str, cause: BaseException | None = None):
        details: dict[str, Any] = {"handler": handler_name}
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        super().__init__(f"refresh failed for key {key!r}", key=key, details=details)
        self.__cause__ = cause


class UndefinedResultError(StashError):
    """The decoded value is undefined and the handler disallows it."""

    code = "UNDEFINED_RESULT"

    def __init__(self, key: str, handler_name: str):
        super().__init__(
            f"stored value for key {key!r} is undefined and handler {handler_name!r} disallows it",
            key=key,
            details={"handler": handler_name},
        )


class StoreError(StashError):
    """The underlying key/value store failed to read or write."""

    code = "STORE_FAILURE"

    def __init__(self, key: str, operation: str, cause: BaseException | None = None):
        details: dict[str, Any] = {"operation": operation}
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        super().__init__(f"store {operation} failed for key {key!r}", key=key, details=details)
        self.__cause__ = cause


class UnknownCodecError(StashError):
    """A handler named a codec family that does not exist."""

    code = "UNKNOWN_CODEC"

    def __init__(self, handler_name: str, codec_type: str):
        super().__init__(
            f"unknown codec type {codec_type!r} for handler {handler_name!r}",
            details={"handler": handler_name, "type": codec_type},
        )


class InvalidHandlerError(StashError):
    """A handler definition cannot be registered as given."""

    code = "INVALID_HANDLER"

    def __init__(self, handler_name: str, reason: str):
        super().__init__(
            f"invalid handler {handler_name!r}: {reason}",
            details={"handler": handler_name, "reason": reason},
        )
