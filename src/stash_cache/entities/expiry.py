"""Value expiry model."""

from collections.abc import Mapping
from typing import Any

from .handler import Handler


def effective_expiry(handler: Handler, default_expiry_seconds: int) -> int:
    """Return the handler's expiry window, falling back to the global default."""
    if handler.expiry_seconds is not None:
        return handler.expiry_seconds
    return default_expiry_seconds


def extract_timestamp(value: Any, field: str) -> float | None:
    """Read an epoch-seconds timestamp from a decoded value.

    Mappings are read by key, other objects by attribute. Numeric strings
    are accepted; booleans and anything non-numeric are ignored.

    Args:
        value: The decoded cache value
        field: Name of the timestamp field

    Returns:
        The timestamp as a float, or None if the value does not expose one
    """
    if isinstance(value, Mapping):
        raw = value.get(field)
    else:
        raw = getattr(value, field, None)

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw)
        except ValueError:
            return None
    return None


def is_fresh(value: Any, handler: Handler, default_expiry_seconds: int, now: float) -> bool:
    """Decide whether a decoded value is still within its expiry window.

    Only values carrying their own timestamp (via the handler's
    ``expiry_field``) can go stale. Store-level age is not tracked, so a
    value without a timestamp is always fresh.

    Args:
        value: The decoded cache value
        handler: The handler that owns the key
        default_expiry_seconds: Global expiry window
        now: Current time in epoch seconds

    Returns:
        True if the value may be served without refreshing
    """
    window = effective_expiry(handler, default_expiry_seconds)
    if window == 0 or handler.expiry_field is None:
        return True

    timestamp = extract_timestamp(value, handler.expiry_field)
    if timestamp is None:
        return True

    return now - timestamp < window
