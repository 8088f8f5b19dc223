"""Domain models and service contracts."""

from .interfaces import DocumentIndexRepository, EncryptionCodec, StorageProvider
from .models import (
    ENCRYPTED_METADATA_KEY,
    ENCRYPTED_METADATA_VALUE,
    DocumentDownload,
    DocumentIndexEntry,
    DocumentIndexQuery,
    SortField,
    StorageObjectInfo,
    StorageProviderType,
    file_name_from_key,
)

__all__ = [
    "ENCRYPTED_METADATA_KEY",
    "ENCRYPTED_METADATA_VALUE",
    "DocumentDownload",
    "DocumentIndexEntry",
    "DocumentIndexQuery",
    "DocumentIndexRepository",
    "EncryptionCodec",
    "SortField",
    "StorageObjectInfo",
    "StorageProvider",
    "StorageProviderType",
    "file_name_from_key",
]
