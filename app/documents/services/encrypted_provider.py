"""
Encrypting storage provider.

Wraps any StorageProvider with an EncryptionCodec:
- On upload: encrypts the payload and marks the object with
  "x-encrypted" = "true" in its metadata.
- On download: reads the marker first and decrypts only marked objects,
  so plaintext objects written before encryption was enabled stay readable.
- All other operations pass through to the inner provider unchanged.
"""

from __future__ import annotations

import io
from datetime import timedelta
from typing import BinaryIO

from loguru import logger

from docstore_core.domain.interfaces import EncryptionCodec, StorageProvider
from docstore_core.domain.models import (
    ENCRYPTED_METADATA_KEY,
    ENCRYPTED_METADATA_VALUE,
    StorageObjectInfo,
)


def _without_marker(metadata: dict[str, str] | None) -> dict[str, str]:
    """Copy of `metadata` with every spelling of the encryption marker removed."""
    return {
        name: value
        for name, value in (metadata or {}).items()
        if name.lower() != ENCRYPTED_METADATA_KEY
    }


class EncryptedStorageProvider:
    """
    StorageProvider decorator adding transparent at-rest encryption.

    The size reported by upload() is the inner provider's figure, i.e. the
    ciphertext length (plaintext + 28 bytes).
    """

    def __init__(self, inner: StorageProvider, codec: EncryptionCodec):
        self._inner = inner
        self._codec = codec

    @property
    def inner(self) -> StorageProvider:
        return self._inner

    def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> StorageObjectInfo:
        encrypted = self._codec.encrypt(content)

        # Caller-supplied markers in any letter case must not shadow ours
        tagged = _without_marker(metadata)
        tagged[ENCRYPTED_METADATA_KEY] = ENCRYPTED_METADATA_VALUE

        logger.info(f"Encrypting document {key} before upload to bucket {bucket}")

        result = self._inner.upload(bucket, key, encrypted, content_type, tagged)
        if not result.is_encrypted:
            result.metadata = {
                **_without_marker(result.metadata),
                ENCRYPTED_METADATA_KEY: ENCRYPTED_METADATA_VALUE,
            }
        return result

    def download(
        self, bucket: str, key: str, info: StorageObjectInfo | None = None
    ) -> BinaryIO:
        if info is None:
            info = self._inner.get_metadata(bucket, key)
        stream = self._inner.download(bucket, key, info)

        if not info.is_encrypted:
            logger.debug(f"Document {key} in bucket {bucket} is not encrypted, returning as-is")
            return stream

        logger.info(f"Decrypting document {key} after download from bucket {bucket}")
        try:
            blob = stream.read()
        finally:
            stream.close()
        return io.BytesIO(self._codec.decrypt(blob))

    def delete(self, bucket: str, key: str) -> None:
        self._inner.delete(bucket, key)

    def get_metadata(self, bucket: str, key: str) -> StorageObjectInfo:
        return self._inner.get_metadata(bucket, key)

    def exists(self, bucket: str, key: str) -> bool:
        return self._inner.exists(bucket, key)

    def list(self, bucket: str, prefix: str | None = None) -> list[StorageObjectInfo]:
        return self._inner.list(bucket, prefix)

    def get_presigned_url(self, bucket: str, key: str, expiry: timedelta) -> str:
        return self._inner.get_presigned_url(bucket, key, expiry)

    def ensure_bucket_exists(self, bucket: str) -> None:
        self._inner.ensure_bucket_exists(bucket)
