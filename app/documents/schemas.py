"""
Pydantic schemas for the documents module.

This module contains the request/response models for the storage and index
APIs. Every response body is a ResultEnvelope; `data` carries one of the
payload models below on success.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from docstore_core.domain.models import (
    DocumentIndexEntry,
    DocumentIndexQuery,
    StorageObjectInfo,
)
from docstore_core.runtime.result import PagedResult, Result


# ==============================================================================
# ENVELOPE
# ==============================================================================


class ResultEnvelope(BaseModel):
    """Uniform response body for every documents/index endpoint."""

    success: bool
    message: Optional[str] = None
    error_code: Optional[str] = None
    data: Any = None


# ==============================================================================
# STORAGE SCHEMAS
# ==============================================================================


class StorageObjectResponse(BaseModel):
    """Response model for object metadata."""

    bucket: str
    key: str
    size: int
    content_type: str
    etag: str | None = None
    last_modified: datetime
    metadata: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_info(cls, info: StorageObjectInfo) -> "StorageObjectResponse":
        return cls(**info.model_dump())


# ==============================================================================
# INDEX SCHEMAS
# ==============================================================================


class IndexEntryResponse(BaseModel):
    """Response model for a document index entry."""

    id: str
    bucket: str
    key: str
    file_name: str
    content_type: str
    size: int
    etag: str | None = None
    is_encrypted: bool
    uploaded_by: str | None = None
    uploaded_at: datetime
    last_modified: datetime | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    custom_metadata: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, entry: DocumentIndexEntry) -> "IndexEntryResponse":
        return cls(**entry.model_dump())


class PagedIndexResponse(BaseModel):
    """One page of index search results."""

    results: list[IndexEntryResponse]
    current_page: int
    page_size: int
    total: int
    pages: int

    @classmethod
    def from_page(cls, page: PagedResult[DocumentIndexEntry]) -> "PagedIndexResponse":
        return cls(
            results=[IndexEntryResponse.from_entry(e) for e in page.results],
            current_page=page.current_page,
            page_size=page.page_size,
            total=page.total,
            pages=page.pages,
        )


class SearchRequest(BaseModel):
    """
    Request model for index search.

    Pagination bounds are checked by the service so that out-of-range
    values come back as an INVALID_PAGINATION envelope.
    """

    bucket: str | None = None
    key_prefix: str | None = None
    file_name: str | None = None
    content_type: str | None = None
    uploaded_by: str | None = None
    uploaded_from: datetime | None = None
    uploaded_to: datetime | None = None
    tags: dict[str, str] | None = None

    page: int = 1
    page_size: int = 50
    sort_by: str = "uploadedAt"
    sort_descending: bool = True

    def to_query(self) -> DocumentIndexQuery:
        return DocumentIndexQuery(**self.model_dump())


# ==============================================================================
# CONVERSION
# ==============================================================================


def to_envelope(result: Result, data: Any = None) -> ResultEnvelope:
    """
    Build the response body for `result`.

    Args:
        result: The service result.
        data: Serializable payload to use instead of result.data on success.
    """
    payload = None
    if result.success:
        payload = data if data is not None else result.data
    return ResultEnvelope(
        success=result.success,
        message=result.message,
        error_code=result.error_code,
        data=payload,
    )
