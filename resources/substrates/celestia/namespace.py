"""Namespace codec for the Celestia blob substrate.

A namespace is exactly 29 bytes: one version byte followed by a 28-byte id.
User namespaces are version 0 with an 18-byte zero prefix and a 10-byte
identifier in bytes 19-28. A small set of namespaces is reserved by the
network and is never accepted as writable.
"""

from __future__ import annotations

import base64
import binascii
import os
from dataclasses import dataclass
from typing import Final

from resources.substrates.celestia.errors import (
    NamespaceInputTooLongError,
    NamespaceInvalidError,
)

NAMESPACE_SIZE: Final[int] = 29
ID_SIZE: Final[int] = 28
USER_ID_SIZE: Final[int] = 10
USER_PREFIX_SIZE: Final[int] = ID_SIZE - USER_ID_SIZE
USER_VERSION: Final[int] = 0
RESERVED_VERSION: Final[int] = 255

RULE_LENGTH = "length"
RULE_VERSION = "version"
RULE_ZERO_PREFIX = "zero_prefix"
RULE_RESERVED = "reserved"
RULE_ENCODING = "encoding"


def _primary_reserved(last_byte: int) -> bytes:
    return bytes(NAMESPACE_SIZE - 1) + bytes([last_byte])


RESERVED_NAMESPACES: Final[dict[str, bytes]] = {
    "primary_reserved_zero": _primary_reserved(0x00),
    "transactions": _primary_reserved(0x01),
    "intermediate_state_roots": _primary_reserved(0x02),
    "pay_for_blob": _primary_reserved(0x04),
    "primary_reserved_padding": _primary_reserved(0xFF),
    "tail_padding": b"\xff" * (NAMESPACE_SIZE - 1) + b"\xfe",
    "parity_shares": b"\xff" * NAMESPACE_SIZE,
}
_RESERVED_SET: Final[frozenset[bytes]] = frozenset(RESERVED_NAMESPACES.values())


@dataclass(frozen=True)
class Namespace:
    """One validated 29-byte namespace. Construct through the codec functions."""

    raw: bytes

    @property
    def version(self) -> int:
        return self.raw[0]

    @property
    def identifier(self) -> bytes:
        """Return the 28-byte id following the version byte."""
        return self.raw[1:]

    def to_display_form(self) -> str:
        return to_display_form(self)

    def to_base64(self) -> str:
        """Return the wire form used in JSON-RPC params."""
        return base64.b64encode(self.raw).decode("ascii")

    @classmethod
    def from_base64(cls, text: str) -> "Namespace":
        """Decode and validate the base64 wire form."""
        try:
            raw = base64.b64decode(text.strip(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise NamespaceInvalidError(
                message="namespace is not valid base64",
                rule=RULE_ENCODING,
            ) from exc
        return validate_namespace(raw)

    def __str__(self) -> str:
        return to_display_form(self)


def validate_namespace(candidate: bytes) -> Namespace:
    """Return ``candidate`` as a ``Namespace`` or raise naming the broken rule."""
    raw = bytes(candidate)
    if len(raw) != NAMESPACE_SIZE:
        raise NamespaceInvalidError(
            message=f"namespace must be {NAMESPACE_SIZE} bytes (got {len(raw)})",
            rule=RULE_LENGTH,
        )

    version = raw[0]
    if version not in (USER_VERSION, RESERVED_VERSION):
        raise NamespaceInvalidError(
            message=f"invalid namespace version {version} (must be 0 or 255)",
            rule=RULE_VERSION,
        )

    if raw in _RESERVED_SET:
        raise NamespaceInvalidError(
            message="namespace is reserved by the network and cannot be written",
            rule=RULE_RESERVED,
        )

    if version == USER_VERSION and any(raw[1 : 1 + USER_PREFIX_SIZE]):
        raise NamespaceInvalidError(
            message=(
                f"version 0 namespaces require {USER_PREFIX_SIZE} leading zero "
                "bytes in the id"
            ),
            rule=RULE_ZERO_PREFIX,
        )

    return Namespace(raw=raw)


def encode_namespace(value: str | bytes) -> Namespace:
    """Build a version-0 namespace from up to 10 bytes of user identifier.

    Text is UTF-8 encoded. The identifier is right-aligned in the last 10
    bytes and left-padded with zeros.
    """
    identifier = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    if len(identifier) > USER_ID_SIZE:
        raise NamespaceInputTooLongError(
            message=(
                f"namespace identifier must be at most {USER_ID_SIZE} bytes "
                f"(got {len(identifier)})"
            ),
            length=len(identifier),
        )
    padded = identifier.rjust(USER_ID_SIZE, b"\x00")
    return validate_namespace(
        bytes([USER_VERSION]) + bytes(USER_PREFIX_SIZE) + padded
    )


def random_namespace() -> Namespace:
    """Return a fresh version-0 namespace with a random 10-byte identifier."""
    while True:
        raw = bytes([USER_VERSION]) + bytes(USER_PREFIX_SIZE) + os.urandom(USER_ID_SIZE)
        if raw not in _RESERVED_SET:
            return Namespace(raw=raw)


def to_display_form(namespace: Namespace) -> str:
    """Render 58 upper-case hex characters."""
    return namespace.raw.hex().upper()


def from_display_form(text: str) -> Namespace:
    """Parse the hex display form (optional ``0x``, any case) and validate it."""
    cleaned = text.strip()
    if cleaned[:2].lower() == "0x":
        cleaned = cleaned[2:]
    try:
        raw = bytes.fromhex(cleaned)
    except ValueError as exc:
        raise NamespaceInvalidError(
            message="namespace display form must be hexadecimal",
            rule=RULE_ENCODING,
        ) from exc
    return validate_namespace(raw)


def parse_namespace(text: str) -> Namespace:
    """Accept either the hex display form or the base64 wire form."""
    cleaned = text.strip()
    if len(cleaned) in (NAMESPACE_SIZE * 2, NAMESPACE_SIZE * 2 + 2):
        return from_display_form(cleaned)
    return Namespace.from_base64(cleaned)
