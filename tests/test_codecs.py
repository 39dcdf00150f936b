"""
Tests for codec families.
"""

import pytest

from stash_cache.codecs import JSON_CODEC, TEXT_CODEC, CodecType, codec_for, known_codecs
from stash_cache.errors import DecodeError


@pytest.mark.parametrize(
    "value",
    [
        {"name": "Bob", "tags": ["a", "b"], "age": 42},
        [1, 2.5, None, True, {"nested": {"deep": "x"}}],
        "plain string",
        0,
        None,
    ],
)
def test_json_round_trip(value):
    """decode(encode(v)) == v for structurally valid JSON values."""
    raw = JSON_CODEC.encode("k", value)
    assert isinstance(raw, str)
    assert JSON_CODEC.decode("k", raw) == value


def test_json_decode_accepts_bytes():
    """Raw bytes from a store decode like strings."""
    assert JSON_CODEC.decode("k", b'{"a": 1}') == {"a": 1}


def test_json_decode_invalid_raises_decode_error():
    """Invalid JSON raises DecodeError carrying the key."""
    with pytest.raises(DecodeError) as exc_info:
        JSON_CODEC.decode("user:1", "{not json")
    assert exc_info.value.key == "user:1"
    assert exc_info.value.code == "DECODE_FAILURE"


def test_text_codec():
    """Text codec stringifies on encode and decodes bytes as UTF-8."""
    assert TEXT_CODEC.encode("k", 12) == "12"
    assert TEXT_CODEC.decode("k", "hello") == "hello"
    assert TEXT_CODEC.decode("k", "héllo".encode("utf-8")) == "héllo"


def test_text_codec_invalid_utf8():
    """Undecodable bytes raise DecodeError."""
    with pytest.raises(DecodeError):
        TEXT_CODEC.decode("k", b"\xff\xfe\xfa")


def test_codec_for():
    """Lookup by tag or enum, case-insensitive; unknown tags give None."""
    assert codec_for("json") is JSON_CODEC
    assert codec_for("JSON") is JSON_CODEC
    assert codec_for(CodecType.TEXT) is TEXT_CODEC
    assert codec_for("yaml") is None
    assert set(known_codecs()) == {"json", "text"}
