"""Authenticated encryption for provider secrets stored at rest.

Envelopes have the text form ``<nonce-hex>:<tag-hex>:<ciphertext-hex>`` so a
sealed secret fits in a single string column. The format carries no version
field; rotating the key means re-sealing every stored envelope out-of-band.
"""

from __future__ import annotations

import os
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from companion.core.errors import ConfigurationError, DecryptionError

KEY_BYTES = 32
NONCE_BYTES = 16
TAG_BYTES = 16
_SEPARATOR = ":"


def generate_key() -> str:
    """Return a fresh random key in the hex form expected by ``ENCRYPTION_KEY``."""
    return secrets.token_hex(KEY_BYTES)


def _parse_key(key_hex: str | None) -> bytes | None:
    if not key_hex:
        return None
    try:
        key = bytes.fromhex(key_hex)
    except ValueError:
        return None
    if len(key) != KEY_BYTES:
        return None
    return key


class TokenCipherService:
    """Seal and open sensitive strings with AES-256-GCM."""

    def __init__(self, *, key_hex: str | None) -> None:
        self._key = _parse_key(key_hex)

    @property
    def configured(self) -> bool:
        return self._key is not None

    def seal(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` under a fresh nonce and return the envelope."""
        if self._key is None:
            raise ConfigurationError(
                "ENCRYPTION_KEY must be a 64-character hex string (32 bytes)."
            )
        nonce = os.urandom(NONCE_BYTES)
        sealed = AESGCM(self._key).encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return _SEPARATOR.join((nonce.hex(), tag.hex(), ciphertext.hex()))

    def open(self, envelope: str) -> str:
        """Verify and decrypt an envelope produced by :meth:`seal`."""
        if self._key is None:
            raise DecryptionError("Encryption key is missing or has the wrong length.")

        parts = envelope.split(_SEPARATOR) if envelope else []
        if len(parts) != 3:
            raise DecryptionError("Invalid encrypted text format.")
        nonce_hex, tag_hex, ciphertext_hex = parts
        try:
            nonce = bytes.fromhex(nonce_hex)
            tag = bytes.fromhex(tag_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError as exc:
            raise DecryptionError("Invalid encrypted text format.") from exc
        if len(nonce) != NONCE_BYTES or len(tag) != TAG_BYTES:
            raise DecryptionError("Invalid encrypted text format.")

        try:
            plaintext = AESGCM(self._key).decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as exc:
            raise DecryptionError(
                "Failed to decrypt token; ciphertext failed authentication."
            ) from exc
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:  # pragma: no cover - authenticated input
            raise DecryptionError("Decrypted token is not valid UTF-8.") from exc


__all__ = ["KEY_BYTES", "TokenCipherService", "generate_key"]
