"""Unit tests for the namespace codec."""

from __future__ import annotations

import pytest

from resources.substrates.celestia.errors import (
    NamespaceInputTooLongError,
    NamespaceInvalidError,
)
from resources.substrates.celestia.namespace import (
    NAMESPACE_SIZE,
    RESERVED_NAMESPACES,
    Namespace,
    encode_namespace,
    from_display_form,
    parse_namespace,
    random_namespace,
    to_display_form,
    validate_namespace,
)


def test_encode_right_aligns_identifier_after_zero_prefix() -> None:
    """Text should land in the last bytes with zero padding to its left."""
    namespace = encode_namespace("abc")

    assert len(namespace.raw) == NAMESPACE_SIZE
    assert namespace.version == 0
    assert namespace.raw[:26] == bytes(26)
    assert namespace.raw[26:] == b"abc"


def test_encode_accepts_exactly_ten_bytes() -> None:
    namespace = encode_namespace(b"0123456789")

    assert namespace.raw[19:] == b"0123456789"


def test_encode_rejects_identifier_longer_than_ten_bytes() -> None:
    with pytest.raises(NamespaceInputTooLongError) as exc_info:
        encode_namespace("eleven-char")

    assert exc_info.value.length == 11


def test_encode_counts_utf8_bytes_not_characters() -> None:
    """Six two-byte characters exceed the ten-byte identifier."""
    with pytest.raises(NamespaceInputTooLongError):
        encode_namespace("éééééé")


def test_display_form_round_trips_exactly() -> None:
    namespace = encode_namespace("vault")
    text = to_display_form(namespace)

    assert len(text) == 58
    assert text == text.upper()
    assert from_display_form(text) == namespace
    assert from_display_form("0x" + text.lower()) == namespace


def test_base64_wire_form_round_trips() -> None:
    namespace = random_namespace()

    assert Namespace.from_base64(namespace.to_base64()) == namespace
    assert parse_namespace(namespace.to_base64()) == namespace
    assert parse_namespace(to_display_form(namespace)) == namespace


def test_random_namespace_is_valid_user_namespace() -> None:
    for _ in range(20):
        namespace = random_namespace()
        assert validate_namespace(namespace.raw) == namespace
        assert namespace.raw[1:19] == bytes(18)


@pytest.mark.parametrize("size", [0, 28, 30])
def test_validate_rejects_wrong_length(size: int) -> None:
    with pytest.raises(NamespaceInvalidError) as exc_info:
        validate_namespace(bytes(size))

    assert exc_info.value.rule == "length"


def test_validate_rejects_unknown_version() -> None:
    candidate = bytes([1]) + bytes(27) + b"\x07"

    with pytest.raises(NamespaceInvalidError) as exc_info:
        validate_namespace(candidate)

    assert exc_info.value.rule == "version"


def test_validate_rejects_non_zero_prefix_for_version_zero() -> None:
    candidate = bytearray(encode_namespace("abc").raw)
    candidate[5] = 1

    with pytest.raises(NamespaceInvalidError) as exc_info:
        validate_namespace(bytes(candidate))

    assert exc_info.value.rule == "zero_prefix"


@pytest.mark.parametrize("name", sorted(RESERVED_NAMESPACES))
def test_validate_rejects_every_reserved_namespace(name: str) -> None:
    with pytest.raises(NamespaceInvalidError) as exc_info:
        validate_namespace(RESERVED_NAMESPACES[name])

    assert exc_info.value.rule == "reserved"


def test_from_display_form_rejects_non_hex_text() -> None:
    with pytest.raises(NamespaceInvalidError) as exc_info:
        from_display_form("zz" * 29)

    assert exc_info.value.rule == "encoding"


def test_invalid_namespace_error_converts_to_validation_detail() -> None:
    with pytest.raises(NamespaceInvalidError) as exc_info:
        validate_namespace(b"short")

    detail = exc_info.value.to_error_detail()
    assert detail.code == "NAMESPACE_INVALID"
    assert detail.category.value == "validation"
    assert detail.metadata["rule"] == "length"
