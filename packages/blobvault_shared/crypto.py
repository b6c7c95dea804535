"""Client-side authenticated encryption for blobvault payloads.

Keys are derived from a locally held secret token with PBKDF2-HMAC-SHA256
and used for AES-256-GCM. Every encryption draws a fresh 12-byte nonce; the
wire form is ``base64(nonce || ciphertext || tag)``.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from dataclasses import dataclass, field
from typing import Any, ClassVar

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from packages.blobvault_shared.errors import BlobVaultError, ErrorCategory, codes

TOKEN_BYTES = 32
KEY_BYTES = 32
NONCE_BYTES = 12
TAG_BYTES = 16
DEFAULT_SALT = "celestia-db-salt"
DEFAULT_ITERATIONS = 100_000


@dataclass(kw_only=True, eq=False)
class DecryptionFailedError(BlobVaultError):
    """Raised when a payload cannot be authenticated and decrypted."""

    code: ClassVar[str] = codes.DECRYPTION_FAILED
    category: ClassVar[ErrorCategory] = ErrorCategory.POLICY

    message: str = (
        "decryption failed: wrong key or data not written by this installation"
    )
    reason: str = "authentication"

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "reason": self.reason}


@dataclass(frozen=True)
class DerivedKey:
    """Symmetric key material derived from one secret token."""

    material: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.material) != KEY_BYTES:
            raise ValueError(f"derived key must be {KEY_BYTES} bytes")

    def __repr__(self) -> str:
        return "DerivedKey(<redacted>)"


def generate_token() -> str:
    """Return a new secret token: base64 text of 32 random bytes."""
    return base64.b64encode(os.urandom(TOKEN_BYTES)).decode("ascii")


def derive_key(
    token: str,
    *,
    salt: str = DEFAULT_SALT,
    iterations: int = DEFAULT_ITERATIONS,
) -> DerivedKey:
    """Derive the AES key for ``token``. Deterministic for equal inputs."""
    if token == "":
        raise ValueError("token must not be empty")
    if iterations <= 0:
        raise ValueError("iterations must be positive")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_BYTES,
        salt=salt.encode("utf-8"),
        iterations=iterations,
    )
    return DerivedKey(material=kdf.derive(token.encode("utf-8")))


def encrypt(plaintext: bytes, key: DerivedKey) -> str:
    """Encrypt ``plaintext`` under ``key`` with a fresh random nonce."""
    nonce = os.urandom(NONCE_BYTES)
    sealed = AESGCM(key.material).encrypt(nonce, plaintext, None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt(blob: str | bytes, key: DerivedKey) -> bytes:
    """Authenticate and decrypt one ``encrypt`` output."""
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionFailedError(
            message="decryption failed: payload is not valid base64",
            reason="encoding",
        ) from exc

    if len(raw) < NONCE_BYTES + TAG_BYTES:
        raise DecryptionFailedError(
            message="decryption failed: payload is truncated",
            reason="truncated",
        )

    nonce, sealed = raw[:NONCE_BYTES], raw[NONCE_BYTES:]
    try:
        return AESGCM(key.material).decrypt(nonce, sealed, None)
    except InvalidTag as exc:
        raise DecryptionFailedError() from exc


def encrypt_json(document: Any, key: DerivedKey) -> str:
    """Serialize ``document`` as compact JSON and encrypt it."""
    payload = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    return encrypt(payload.encode("utf-8"), key)


def decrypt_json(blob: str | bytes, key: DerivedKey) -> Any:
    """Decrypt one payload and parse it as JSON."""
    plaintext = decrypt(blob, key)
    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecryptionFailedError(
            message="decryption succeeded but payload is not a JSON document",
            reason="payload",
        ) from exc
