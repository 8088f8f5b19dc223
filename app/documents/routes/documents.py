"""
Document storage routes.

This module exposes the object-storage operations of the DocumentService:
- Upload, download, delete and existence checks
- Object metadata and bucket listing
- Presigned download URLs and bucket creation
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from fastapi.responses import StreamingResponse
from loguru import logger

from app.documents.dependencies import get_run_context, respond, status_for
from app.documents.factory import get_document_service
from app.documents.schemas import StorageObjectResponse
from app.documents.services.document_service import DocumentService
from docstore_core.runtime.context import RunContext

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.post("/{bucket}/upload")
def upload_document(
    bucket: str,
    file: UploadFile = File(...),
    key: str | None = Query(default=None),
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """
    Upload a document to a bucket.

    Args:
        bucket: Target bucket.
        file: The document file to upload.
        key: Object key; defaults to the uploaded file name.
    """
    object_key = key or file.filename or ""
    # At most one byte past the limit; the service rejects anything longer
    content = file.file.read(service.max_upload_bytes + 1)

    logger.info(f"[{ctx.request_id}] Upload request for {bucket}/{object_key} ({len(content)} bytes)")

    result = service.upload(
        bucket,
        object_key,
        content,
        file.content_type or "",
        ctx=ctx,
    )
    data = StorageObjectResponse.from_info(result.data) if result.success else None
    return respond(result, data)


@router.get("/{bucket}/download/{key:path}")
def download_document(
    bucket: str,
    key: str,
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Stream a document's content; encrypted documents are decrypted first."""
    result = service.download(bucket, key, ctx=ctx)
    if not result.success:
        return respond(result)

    download = result.data
    return StreamingResponse(
        download.content,
        media_type=download.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{download.file_name}"',
            "Content-Length": str(download.size),
        },
    )


@router.get("/{bucket}/metadata/{key:path}")
def get_document_metadata(
    bucket: str,
    key: str,
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Get backend metadata for a document."""
    result = service.get_metadata(bucket, key, ctx=ctx)
    data = StorageObjectResponse.from_info(result.data) if result.success else None
    return respond(result, data)


@router.head("/{bucket}/{key:path}")
def document_exists(
    bucket: str,
    key: str,
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """200 when the document exists, 404 when it does not."""
    result = service.exists(bucket, key, ctx=ctx)
    if not result.success:
        return Response(status_code=status_for(result.error_code))
    return Response(status_code=200 if result.data else 404)


@router.delete("/{bucket}/{key:path}")
def delete_document(
    bucket: str,
    key: str,
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Delete a document and drop its index entry."""
    return respond(service.delete(bucket, key, ctx=ctx))


@router.get("/{bucket}")
def list_documents(
    bucket: str,
    prefix: str | None = Query(default=None),
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """List documents in a bucket, optionally filtered by key prefix."""
    result = service.list(bucket, prefix, ctx=ctx)
    data = [StorageObjectResponse.from_info(o) for o in result.data] if result.success else None
    return respond(result, data)


@router.post("/{bucket}/presigned-url/{key:path}")
def create_presigned_url(
    bucket: str,
    key: str,
    expiry_minutes: int = Query(default=60),
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Generate a time-limited download URL for a document."""
    return respond(service.get_presigned_url(bucket, key, expiry_minutes, ctx=ctx))


@router.put("/buckets/{bucket}")
def ensure_bucket(
    bucket: str,
    service: DocumentService = Depends(get_document_service),
    ctx: RunContext = Depends(get_run_context),
):
    """Create the bucket if it does not exist yet."""
    return respond(service.ensure_bucket_exists(bucket, ctx=ctx))
