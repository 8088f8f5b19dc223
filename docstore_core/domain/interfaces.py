"""
Service interfaces (Protocols) for the docstore gateway.

These protocols are the seams between the orchestrator and its
collaborators. Any object-storage backend, encryption codec or index
store that satisfies them can be swapped in by construction alone.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

from .models import DocumentIndexEntry, DocumentIndexQuery, StorageObjectInfo

if TYPE_CHECKING:
    from docstore_core.runtime.context import RunContext


@runtime_checkable
class StorageProvider(Protocol):
    """
    Abstract object-storage contract.

    All storage backends must implement these methods to be usable by the
    document service.
    """

    def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> StorageObjectInfo:
        """
        Store `content` under bucket/key and report what the backend stored.

        Args:
            bucket: Target bucket.
            key: Object key inside the bucket.
            content: The object payload.
            content_type: MIME type recorded with the object.
            metadata: Optional user metadata stored with the object.

        Returns:
            StorageObjectInfo: Backend-reported information about the object.
        """
        ...

    def download(
        self, bucket: str, key: str, info: StorageObjectInfo | None = None
    ) -> BinaryIO:
        """
        Return a readable stream over the stored object's bytes.

        `info` is metadata the caller already read for this object. Providers
        that need it (the encrypting decorator) use it instead of a second stat.
        """
        ...

    def delete(self, bucket: str, key: str) -> None:
        """Remove the object."""
        ...

    def get_metadata(self, bucket: str, key: str) -> StorageObjectInfo:
        """Return size, content type, etag and user metadata of the object."""
        ...

    def exists(self, bucket: str, key: str) -> bool:
        """Return True if the object exists."""
        ...

    def list(self, bucket: str, prefix: str | None = None) -> list[StorageObjectInfo]:
        """List objects in the bucket, optionally restricted to a key prefix."""
        ...

    def get_presigned_url(self, bucket: str, key: str, expiry: timedelta) -> str:
        """Return a time-limited, credential-free download URL."""
        ...

    def ensure_bucket_exists(self, bucket: str) -> None:
        """Create the bucket if it does not already exist."""
        ...


@runtime_checkable
class EncryptionCodec(Protocol):
    """Authenticated encryption of whole payloads."""

    def encrypt(self, plaintext: bytes) -> bytes:
        ...

    def decrypt(self, blob: bytes) -> bytes:
        """Raises IntegrityError if the blob is malformed or fails authentication."""
        ...


@runtime_checkable
class DocumentIndexRepository(Protocol):
    """
    Persistent catalogue of document metadata.

    Implementations enforce uniqueness of (bucket, key) and make every
    write all-or-nothing.
    """

    def get_by_id(self, entry_id: str, ctx: RunContext | None = None) -> DocumentIndexEntry | None:
        ...

    def get_by_bucket_and_key(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> DocumentIndexEntry | None:
        ...

    def search(
        self, query: DocumentIndexQuery, ctx: RunContext | None = None
    ) -> list[DocumentIndexEntry]:
        """Return one sorted page of matching entries."""
        ...

    def count(self, query: DocumentIndexQuery, ctx: RunContext | None = None) -> int:
        """Return the number of matching entries, ignoring sort and pagination."""
        ...

    def add(self, entry: DocumentIndexEntry, ctx: RunContext | None = None) -> None:
        ...

    def update(self, entry: DocumentIndexEntry, ctx: RunContext | None = None) -> None:
        ...

    def upsert(
        self, entry: DocumentIndexEntry, ctx: RunContext | None = None
    ) -> DocumentIndexEntry:
        """
        Insert `entry`, or refresh the existing entry for its (bucket, key).

        On conflict only size, content_type, etag, is_encrypted and
        last_modified are overwritten.

        Returns:
            DocumentIndexEntry: The entry as stored.
        """
        ...

    def delete_by_id(self, entry_id: str, ctx: RunContext | None = None) -> None:
        ...

    def delete_by_bucket_and_key(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> None:
        ...
