"""
Domain models for stored objects and the document index.

These models describe what the storage backends report about an object
(StorageObjectInfo), the denormalized index record kept for search
(DocumentIndexEntry), and the filter/sort/page parameters used to
query that index (DocumentIndexQuery).
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import BinaryIO, Optional

from pydantic import BaseModel, Field, field_validator

ENCRYPTED_METADATA_KEY = "x-encrypted"
ENCRYPTED_METADATA_VALUE = "true"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def file_name_from_key(key: str) -> str:
    """Return the last path segment of an object key."""
    return posixpath.basename(key.rstrip("/")) or key


class StorageProviderType(str, Enum):
    """Supported object storage backends."""

    MINIO = "minio"
    SEAWEEDFS = "seaweedfs"
    LOCAL = "local"


class SortField(str, Enum):
    """Sortable columns of the document index."""

    FILE_NAME = "fileName"
    SIZE = "size"
    CONTENT_TYPE = "contentType"
    UPLOADED_AT = "uploadedAt"


_SORT_ALIASES = {
    "filename": SortField.FILE_NAME,
    "size": SortField.SIZE,
    "contenttype": SortField.CONTENT_TYPE,
    "uploadedat": SortField.UPLOADED_AT,
}


class StorageObjectInfo(BaseModel):
    """
    Backend-reported truth about one stored object.

    Metadata keys are compared case-insensitively; use get_metadata()
    rather than indexing the dict directly.
    """

    bucket: str
    key: str
    size: int = Field(0, ge=0)
    content_type: str = ""
    etag: Optional[str] = None
    last_modified: datetime = Field(default_factory=utcnow)
    metadata: dict[str, str] = Field(default_factory=dict)

    def get_metadata(self, name: str) -> str | None:
        wanted = name.lower()
        for k, v in self.metadata.items():
            if k.lower() == wanted:
                return v
        return None

    @property
    def is_encrypted(self) -> bool:
        value = self.get_metadata(ENCRYPTED_METADATA_KEY)
        return value is not None and value.lower() == ENCRYPTED_METADATA_VALUE


class DocumentIndexEntry(BaseModel):
    """
    Searchable, possibly stale record mirroring one stored object.

    The pair (bucket, key) is unique across all entries. Tags are used by
    the query layer for filtering; custom_metadata is descriptive only.
    """

    id: str
    bucket: str
    key: str
    file_name: str
    content_type: str
    size: int = 0
    etag: Optional[str] = None
    is_encrypted: bool = False
    uploaded_by: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=utcnow)
    last_modified: Optional[datetime] = None
    tags: dict[str, str] = Field(default_factory=dict)
    custom_metadata: dict[str, str] = Field(default_factory=dict)

    @field_validator("uploaded_at", "last_modified")
    @classmethod
    def _normalize_timestamps(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    def touch(self) -> datetime:
        """Refresh last_modified, keeping it strictly increasing for this entry."""
        now = utcnow()
        floor = self.last_modified or self.uploaded_at
        if floor is not None and now <= floor:
            now = floor + timedelta(microseconds=1)
        self.last_modified = now
        return now


class DocumentIndexQuery(BaseModel):
    """
    Filter, sort and page parameters for index searches.

    Every filter is optional; None or an empty string means "no constraint".
    Tag filters are conjunctive: each given tag must be present on the entry
    with exactly the given value.
    """

    bucket: Optional[str] = None
    key_prefix: Optional[str] = None
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    uploaded_by: Optional[str] = None
    uploaded_from: Optional[datetime] = None
    uploaded_to: Optional[datetime] = None
    tags: Optional[dict[str, str]] = None

    page: int = 1
    page_size: int = 50

    sort_by: str = SortField.UPLOADED_AT.value
    sort_descending: bool = True

    @field_validator("uploaded_from", "uploaded_to")
    @classmethod
    def _normalize_range(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    def sort_field(self) -> SortField:
        """Resolve sort_by; unrecognized values fall back to uploadedAt."""
        normalized = (self.sort_by or "").replace("_", "").lower()
        return _SORT_ALIASES.get(normalized, SortField.UPLOADED_AT)

    def matches(self, entry: DocumentIndexEntry) -> bool:
        if self.bucket and entry.bucket != self.bucket:
            return False
        if self.key_prefix and not entry.key.startswith(self.key_prefix):
            return False
        if self.file_name and self.file_name not in entry.file_name:
            return False
        if self.content_type and entry.content_type != self.content_type:
            return False
        if self.uploaded_by and entry.uploaded_by != self.uploaded_by:
            return False
        if self.uploaded_from is not None and entry.uploaded_at < self.uploaded_from:
            return False
        if self.uploaded_to is not None and entry.uploaded_at > self.uploaded_to:
            return False
        if self.tags:
            for tag_key, tag_value in self.tags.items():
                if entry.tags.get(tag_key) != tag_value:
                    return False
        return True


@dataclass
class DocumentDownload:
    """Content stream and descriptive headers for one downloaded document."""

    content: BinaryIO
    content_type: str
    file_name: str
    size: int
