"""
AES-256-GCM payload encryption.

Encrypted format: [12-byte nonce][ciphertext][16-byte authentication tag]

- The nonce is randomly generated per encryption call and never reused.
- The authentication tag covers the whole payload, so the full plaintext
  (and, on decrypt, the full blob) is held in memory.
- The key is supplied once at construction and never changes.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from loguru import logger

from docstore_core.runtime.errors import IntegrityError

NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32
OVERHEAD = NONCE_SIZE + TAG_SIZE


class AesGcmCodec:
    """
    Authenticated encryption codec bound to one 256-bit key.

    Usage:
        codec = AesGcmCodec.from_base64(settings.ENCRYPTION_MASTER_KEY)
        blob = codec.encrypt(b"hello")
        assert codec.decrypt(blob) == b"hello"
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise ValueError(
                f"Encryption key must be exactly {KEY_SIZE} bytes (256-bit). Got {len(key)} bytes."
            )
        self._aead = AESGCM(bytes(key))
        logger.info("AES-256-GCM encryption codec initialized")

    @classmethod
    def from_base64(cls, encoded_key: str) -> "AesGcmCodec":
        """Build a codec from a base64-encoded key."""
        if not encoded_key:
            raise ValueError("Encryption is enabled but no master key is configured.")
        try:
            key = base64.b64decode(encoded_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("Encryption master key is not valid base64.") from e
        return cls(key)

    def encrypt(self, plaintext: bytes) -> bytes:
        nonce = os.urandom(NONCE_SIZE)
        # AESGCM appends the 16-byte tag to the ciphertext
        sealed = self._aead.encrypt(nonce, bytes(plaintext), None)
        blob = nonce + sealed

        logger.debug(f"Encrypted {len(plaintext)} bytes -> {len(blob)} bytes")
        return blob

    def decrypt(self, blob: bytes) -> bytes:
        """
        Decrypt a blob produced by encrypt().

        Raises:
            IntegrityError: If the blob is too short or fails authentication.
        """
        if len(blob) < OVERHEAD:
            raise IntegrityError(
                "Encrypted data is too short to contain nonce and authentication tag.",
                message_debug=f"blob length {len(blob)} < {OVERHEAD}",
            )

        nonce = bytes(blob[:NONCE_SIZE])
        sealed = bytes(blob[NONCE_SIZE:])
        try:
            plaintext = self._aead.decrypt(nonce, sealed, None)
        except InvalidTag as e:
            raise IntegrityError(
                "Encrypted data failed authentication.",
                cause=e,
            ) from e

        logger.debug(f"Decrypted {len(blob)} bytes -> {len(plaintext)} bytes")
        return plaintext
