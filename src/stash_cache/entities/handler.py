"""Handler domain entities."""

import re
from dataclasses import dataclass
from typing import Any, Callable

from stash_cache.codecs import CodecType, Decoder, Encoder
from stash_cache.protocols import Refresher

FALLBACK_HANDLER_NAME = "none"

KeyPredicate = Callable[[str], bool]
Matcher = str | re.Pattern[str] | KeyPredicate


def compile_matcher(matcher: Matcher | None) -> KeyPredicate | None:
    """Turn a matcher specification into a key predicate.

    Regular expressions (strings or compiled patterns) match anywhere in the
    key, so anchor them with ``^`` to match a prefix.

    Args:
        matcher: A regex string, compiled pattern, callable or None

    Returns:
        A ``key -> bool`` predicate, or None if no matcher was given

    Raises:
        TypeError: If the matcher is none of the accepted kinds
        re.error: If a regex string does not compile
    """
    if matcher is None:
        return None
    if isinstance(matcher, str):
        matcher = re.compile(matcher)
    if isinstance(matcher, re.Pattern):
        pattern = matcher
        return lambda key: pattern.search(key) is not None
    if callable(matcher):
        return lambda key: bool(matcher(key))
    raise TypeError(f"matcher must be a regex or a callable, got {type(matcher).__name__}")


def is_undefined(value: Any) -> bool:
    """Check whether a decoded value counts as undefined.

    None and empty strings (text or bytes) are undefined. Empty containers
    and falsy numbers are real values.
    """
    if value is None:
        return True
    return isinstance(value, (str, bytes)) and not value


@dataclass(frozen=True)
class HandlerDefinition:
    """What a caller supplies when registering a handler.

    Attributes:
        matcher: Regex or predicate selecting the keys this handler owns
        type: Codec family tag ("json", "text") used to fill encode/decode
        encode: Custom ``(key, value) -> raw``; wins over the codec family
        decode: Custom ``(key, raw) -> value``; wins over the codec family
        expiry_seconds: Override of the global expiry window, 0 = never
        expiry_field: Field of the decoded value holding its epoch timestamp
        allow_undefined: Accept an undefined decoded value (None or empty) as a final result
        refresh: Fetches a fresh value; None means misses are terminal
    """

    matcher: Matcher | None = None
    type: str | CodecType | None = None
    encode: Encoder | None = None
    decode: Decoder | None = None
    expiry_seconds: int | None = None
    expiry_field: str | None = None
    allow_undefined: bool = False
    refresh: Refresher | None = None


@dataclass(frozen=True)
class Handler:
    """A registered handler, as resolved by the registry.

    Built from a HandlerDefinition with the matcher compiled and the codec
    family (if any) applied.
    """

    name: str
    matcher: KeyPredicate | None = None
    encode: Encoder | None = None
    decode: Decoder | None = None
    expiry_seconds: int | None = None
    expiry_field: str | None = None
    allow_undefined: bool = False
    refresh: Refresher | None = None
    codec: str | None = None

    @property
    def can_refresh(self) -> bool:
        return self.refresh is not None

    def matches(self, key: str) -> bool:
        """Check whether this handler claims a key."""
        return self.matcher is not None and self.matcher(key)

    def encode_value(self, key: str, value: Any) -> Any:
        """Encode a value for storage (verbatim without an encoder)."""
        if self.encode is None:
            return value
        return self.encode(key, value)

    def decode_raw(self, key: str, raw: Any) -> Any:
        """Decode a stored raw value (verbatim without a decoder)."""
        if self.decode is None:
            return raw
        return self.decode(key, raw)
