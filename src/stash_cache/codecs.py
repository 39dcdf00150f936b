"""Codec families for stored values.

A handler definition may name a codec family through its ``type`` tag. The
registry then fills in the handler's ``encode``/``decode`` from the matching
codec, unless the caller supplied its own functions.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from stash_cache.errors import DecodeError

Encoder = Callable[[str, Any], Any]
Decoder = Callable[[str, Any], Any]


class CodecType(str, Enum):
    """Known codec families."""

    JSON = "json"
    TEXT = "text"


@dataclass(frozen=True)
class Codec:
    """An encode/decode pair for one codec family.

    Attributes:
        name: The family tag (e.g. "json")
        encode: ``(key, value) -> raw``
        decode: ``(key, raw) -> value``; raises DecodeError on bad input
    """

    name: str
    encode: Encoder
    decode: Decoder


def _as_text(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8")
    return str(raw)


def _json_encode(key: str, value: Any) -> str:
    return json.dumps(value)


def _json_decode(key: str, raw: Any) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise DecodeError(key, f"invalid JSON: {e}") from e


def _text_encode(key: str, value: Any) -> str:
    return _as_text(value)


def _text_decode(key: str, raw: Any) -> str:
    try:
        return _as_text(raw)
    except UnicodeDecodeError as e:
        raise DecodeError(key, f"invalid UTF-8: {e}") from e


JSON_CODEC = Codec(name=CodecType.JSON.value, encode=_json_encode, decode=_json_decode)
TEXT_CODEC = Codec(name=CodecType.TEXT.value, encode=_text_encode, decode=_text_decode)

_CODECS: dict[str, Codec] = {
    CodecType.JSON.value: JSON_CODEC,
    CodecType.TEXT.value: TEXT_CODEC,
}


def codec_for(codec_type: "str | CodecType") -> Codec | None:
    """Look up the codec for a type tag.

    Args:
        codec_type: A tag such as "json" or a CodecType member

    Returns:
        The matching Codec, or None if the tag is unknown
    """
    tag = codec_type.value if isinstance(codec_type, CodecType) else str(codec_type).lower()
    return _CODECS.get(tag)


def known_codecs() -> list[str]:
    """Return the names of all known codec families."""
    return list(_CODECS)
