"""
Document index routes.

Search, lookups and tag/metadata edits against the document index. These
endpoints never touch the storage backend; with indexing disabled they
answer 409 with INDEXING_DISABLED.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query

from app.documents.dependencies import get_run_context, respond
from app.documents.factory import get_document_service
from app.documents.schemas import IndexEntryResponse, PagedIndexResponse, SearchRequest
from app.documents.services.document_service import DocumentService
from docstore_core.runtime.context import RunContext

router = APIRouter(prefix="/index", tags=["Index"])


def _entry_data(result):
    return IndexEntryResponse.from_entry(result.data) if result.success else None


@router.post("/search")
def search_index(
    request: SearchRequest,
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Search indexed documents with filters, sorting and pagination."""
    result = service.search_index(request.to_query(), ctx=ctx)
    data = PagedIndexResponse.from_page(result.data) if result.success else None
    return respond(result, data)


@router.get("/{bucket}/lookup")
def get_entry_by_key(
    bucket: str,
    key: str = Query(...),
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Get the index entry for bucket/key."""
    result = service.get_index_entry_by_key(bucket, key, ctx=ctx)
    return respond(result, _entry_data(result))


@router.get("/{entry_id}")
def get_entry(
    entry_id: str,
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Get an index entry by id."""
    result = service.get_index_entry(entry_id, ctx=ctx)
    return respond(result, _entry_data(result))


@router.put("/{entry_id}/tags")
def update_tags(
    entry_id: str,
    tags: dict[str, str] = Body(...),
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Replace the entry's tags with the request body."""
    result = service.update_tags(entry_id, tags, ctx=ctx)
    return respond(result, _entry_data(result))


@router.put("/{entry_id}/metadata")
def update_metadata(
    entry_id: str,
    metadata: dict[str, str] = Body(...),
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Replace the entry's custom metadata with the request body."""
    result = service.update_metadata(entry_id, metadata, ctx=ctx)
    return respond(result, _entry_data(result))
