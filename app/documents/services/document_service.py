"""
DocumentService: orchestrates storage, encryption and the document index.

Every public method validates its input, runs the backend call(s), and
returns a Result envelope; nothing is raised to the caller. The index is an
optional collaborator: when it is None, indexing is disabled and index
operations fail with INDEXING_DISABLED, while storage operations work as
usual. Index writes that follow a successful upload or delete are
best-effort; their failures are logged and never change the outcome.
"""

from __future__ import annotations

import io
import uuid
from datetime import timedelta
from typing import BinaryIO

from loguru import logger

from docstore_core.domain.interfaces import DocumentIndexRepository, StorageProvider
from docstore_core.domain.models import (
    DocumentDownload,
    DocumentIndexEntry,
    DocumentIndexQuery,
    StorageObjectInfo,
    file_name_from_key,
    utcnow,
)
from docstore_core.runtime.catalog import ErrorCatalog
from docstore_core.runtime.context import RunContext
from docstore_core.runtime.errors import (
    BackendError,
    ErrorCode,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from docstore_core.runtime.result import PagedResult, Result

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_MAX_UPLOAD_BYTES = 500 * 1024 * 1024
DEFAULT_MAX_PRESIGNED_EXPIRY = timedelta(days=7)
DEFAULT_MAX_PAGE_SIZE = 500


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _require_bucket(bucket: str | None) -> None:
    if _is_blank(bucket):
        raise ValidationError("Bucket name is required", code=ErrorCode.INVALID_BUCKET)


def _require_key(key: str | None) -> None:
    if _is_blank(key):
        raise ValidationError("Object key is required", code=ErrorCode.INVALID_KEY)


def _parse_entry_id(entry_id: str | None) -> str:
    """Canonical form of an index entry id; ids that are not UUIDs cannot exist."""
    try:
        return str(uuid.UUID(str(entry_id)))
    except ValueError as e:
        raise NotFoundError(
            f"Index entry {entry_id} not found", code=ErrorCode.INDEX_ENTRY_NOT_FOUND
        ) from e


def _check_deadline(ctx: RunContext | None, operation: str) -> None:
    if ctx is not None:
        ctx.raise_if_expired(operation)


def _stream_size(stream: BinaryIO, fallback: int) -> int:
    if isinstance(stream, io.BytesIO):
        return stream.getbuffer().nbytes
    return fallback


class DocumentService:
    """
    Uniform document operations over a storage provider and optional index.

    Usage:
        service = DocumentService(provider, ErrorCatalog.load_from_file(), index=repo)
        result = service.upload("docs", "a.txt", b"hello", "text/plain")
        if result.success:
            print(result.data.etag)
    """

    def __init__(
        self,
        provider: StorageProvider,
        errors: ErrorCatalog,
        index: DocumentIndexRepository | None = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        max_presigned_expiry: timedelta = DEFAULT_MAX_PRESIGNED_EXPIRY,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    ):
        self._provider = provider
        self._errors = errors
        self._index = index
        self._max_upload_bytes = max_upload_bytes
        self._max_presigned_expiry = max_presigned_expiry
        self._max_page_size = max_page_size

        if index is None:
            logger.info("Document indexing is disabled; index operations will be rejected")
        else:
            logger.info(f"Document indexing enabled ({type(index).__name__})")

    @property
    def indexing_enabled(self) -> bool:
        return self._index is not None

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def _fail(
        self,
        operation: str,
        failure_code: str,
        error: Exception,
        target: str = "",
    ) -> Result:
        """Map an exception raised during `operation` to a failure envelope."""
        where = f" for {target}" if target else ""
        if isinstance(error, BackendError):
            logger.error(f"{operation} failed{where}: {error.message_debug or error}")
            return self._errors.fail(failure_code)
        if isinstance(error, ServiceError):
            logger.warning(f"{operation} rejected{where}: {error}")
            return self._errors.fail(error.code)

        logger.opt(exception=error).error(f"Unexpected error during {operation}{where}")
        return self._errors.fail(failure_code)

    def _require_index(self) -> DocumentIndexRepository:
        if self._index is None:
            raise ServiceError("Document indexing is disabled", code=ErrorCode.INDEXING_DISABLED)
        return self._index

    def _require_object(self, bucket: str, key: str, ctx: RunContext | None, operation: str) -> None:
        _check_deadline(ctx, operation)
        if not self._provider.exists(bucket, key):
            raise NotFoundError(f"Object not found: {bucket}/{key}")

    # ------------------------------------------------------------------
    # Storage operations
    # ------------------------------------------------------------------

    def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
        uploaded_by: str | None = None,
        ctx: RunContext | None = None,
    ) -> Result[StorageObjectInfo]:
        """
        Store `content` under bucket/key, then record it in the index.

        The index step runs only after the object is stored, and its failure
        leaves the upload successful.
        """
        try:
            _require_bucket(bucket)
            _require_key(key)
            if not content:
                raise ValidationError("Content is empty", code=ErrorCode.CONTENT_EMPTY)
            if _is_blank(content_type):
                raise ValidationError("Content type is required", code=ErrorCode.CONTENT_TYPE_MISSING)
            if len(content) > self._max_upload_bytes:
                raise ValidationError(
                    f"Content exceeds the {self._max_upload_bytes} byte upload limit",
                    code=ErrorCode.CONTENT_TOO_LARGE,
                )

            _check_deadline(ctx, "upload")
            info = self._provider.upload(bucket, key, content, content_type, metadata)
        except Exception as e:
            return self._fail("upload", ErrorCode.UPLOAD_FAILED, e, f"{bucket}/{key}")

        logger.info(f"Uploaded {bucket}/{key} ({info.size} bytes stored)")

        owner = uploaded_by or (ctx.user_id if ctx is not None else None)
        self._index_upload(info, metadata, owner, ctx)

        return Result.ok(info)

    def _index_upload(
        self,
        info: StorageObjectInfo,
        metadata: dict[str, str] | None,
        uploaded_by: str | None,
        ctx: RunContext | None,
    ) -> None:
        if self._index is None:
            logger.debug(f"Indexing disabled; {info.bucket}/{info.key} not indexed")
            return

        now = utcnow()
        entry = DocumentIndexEntry(
            id=str(uuid.uuid4()),
            bucket=info.bucket,
            key=info.key,
            file_name=file_name_from_key(info.key),
            content_type=info.content_type,
            size=info.size,
            etag=info.etag,
            is_encrypted=info.is_encrypted,
            uploaded_by=uploaded_by,
            uploaded_at=now,
            last_modified=now,
            custom_metadata=dict(metadata or {}),
        )

        try:
            stored = self._index.upsert(entry, ctx)
        except Exception as e:
            logger.warning(
                f"Index update after upload failed for {info.bucket}/{info.key}; "
                f"object is stored but not indexed: {e}"
            )
            return

        logger.debug(f"Indexed {info.bucket}/{info.key} as {stored.id}")

    def download(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> Result[DocumentDownload]:
        """Fetch an object's content; encrypted objects come back decrypted."""
        try:
            _require_bucket(bucket)
            _require_key(key)
            self._require_object(bucket, key, ctx, "download")

            _check_deadline(ctx, "download")
            info = self._provider.get_metadata(bucket, key)
            stream = self._provider.download(bucket, key, info)
        except Exception as e:
            return self._fail("download", ErrorCode.DOWNLOAD_FAILED, e, f"{bucket}/{key}")

        return Result.ok(
            DocumentDownload(
                content=stream,
                content_type=info.content_type or DEFAULT_CONTENT_TYPE,
                file_name=file_name_from_key(key),
                size=_stream_size(stream, info.size),
            )
        )

    def delete(self, bucket: str, key: str, ctx: RunContext | None = None) -> Result[bool]:
        try:
            _require_bucket(bucket)
            _require_key(key)
            self._require_object(bucket, key, ctx, "delete")

            _check_deadline(ctx, "delete")
            self._provider.delete(bucket, key)
        except Exception as e:
            return self._fail("delete", ErrorCode.DELETE_FAILED, e, f"{bucket}/{key}")

        logger.info(f"Deleted {bucket}/{key}")

        if self._index is not None:
            try:
                self._index.delete_by_bucket_and_key(bucket, key, ctx)
            except Exception as e:
                logger.warning(f"Index removal after delete failed for {bucket}/{key}: {e}")

        return Result.ok(True, "Document deleted successfully.")

    def get_metadata(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> Result[StorageObjectInfo]:
        try:
            _require_bucket(bucket)
            _require_key(key)
            self._require_object(bucket, key, ctx, "metadata lookup")

            _check_deadline(ctx, "metadata lookup")
            info = self._provider.get_metadata(bucket, key)
        except Exception as e:
            return self._fail(
                "metadata lookup", ErrorCode.METADATA_RETRIEVAL_FAILED, e, f"{bucket}/{key}"
            )

        return Result.ok(info)

    def exists(self, bucket: str, key: str, ctx: RunContext | None = None) -> Result[bool]:
        try:
            _require_bucket(bucket)
            _require_key(key)

            _check_deadline(ctx, "existence check")
            found = self._provider.exists(bucket, key)
        except Exception as e:
            return self._fail(
                "existence check", ErrorCode.GENERIC_UNEXPECTED, e, f"{bucket}/{key}"
            )

        return Result.ok(found)

    def list(
        self, bucket: str, prefix: str | None = None, ctx: RunContext | None = None
    ) -> Result[list[StorageObjectInfo]]:
        try:
            _require_bucket(bucket)

            _check_deadline(ctx, "list")
            objects = self._provider.list(bucket, prefix or None)
        except Exception as e:
            return self._fail("list", ErrorCode.LIST_OBJECTS_FAILED, e, bucket)

        return Result.ok(objects)

    def get_presigned_url(
        self,
        bucket: str,
        key: str,
        expiry_minutes: int = 60,
        ctx: RunContext | None = None,
    ) -> Result[str]:
        try:
            _require_bucket(bucket)
            _require_key(key)
            expiry = timedelta(minutes=expiry_minutes)
            if expiry_minutes < 1 or expiry > self._max_presigned_expiry:
                raise ValidationError(
                    f"Expiry of {expiry_minutes} minutes is outside the allowed range",
                    code=ErrorCode.INVALID_EXPIRY,
                )

            _check_deadline(ctx, "presign")
            url = self._provider.get_presigned_url(bucket, key, expiry)
        except Exception as e:
            return self._fail("presign", ErrorCode.PRESIGNED_URL_FAILED, e, f"{bucket}/{key}")

        return Result.ok(url)

    def ensure_bucket_exists(self, bucket: str, ctx: RunContext | None = None) -> Result[bool]:
        try:
            _require_bucket(bucket)

            _check_deadline(ctx, "bucket creation")
            self._provider.ensure_bucket_exists(bucket)
        except Exception as e:
            return self._fail("bucket creation", ErrorCode.BUCKET_CREATION_FAILED, e, bucket)

        return Result.ok(True, f"Bucket '{bucket}' is ready.")

    # ------------------------------------------------------------------
    # Index operations
    # ------------------------------------------------------------------

    def get_index_entry(
        self, entry_id: str, ctx: RunContext | None = None
    ) -> Result[DocumentIndexEntry]:
        try:
            index = self._require_index()
            entry_id = _parse_entry_id(entry_id)
            entry = index.get_by_id(entry_id, ctx)
            if entry is None:
                raise NotFoundError(
                    f"Index entry {entry_id} not found", code=ErrorCode.INDEX_ENTRY_NOT_FOUND
                )
        except Exception as e:
            return self._fail("index lookup", ErrorCode.INDEX_QUERY_FAILED, e, entry_id)

        return Result.ok(entry)

    def get_index_entry_by_key(
        self, bucket: str, key: str, ctx: RunContext | None = None
    ) -> Result[DocumentIndexEntry]:
        try:
            index = self._require_index()
            _require_bucket(bucket)
            _require_key(key)
            entry = index.get_by_bucket_and_key(bucket, key, ctx)
            if entry is None:
                raise NotFoundError(
                    f"No index entry for {bucket}/{key}", code=ErrorCode.INDEX_ENTRY_NOT_FOUND
                )
        except Exception as e:
            return self._fail("index lookup", ErrorCode.INDEX_QUERY_FAILED, e, f"{bucket}/{key}")

        return Result.ok(entry)

    def update_tags(
        self, entry_id: str, tags: dict[str, str], ctx: RunContext | None = None
    ) -> Result[DocumentIndexEntry]:
        """Replace the entry's tags wholesale (no merge)."""
        try:
            index = self._require_index()
            entry_id = _parse_entry_id(entry_id)
            entry = index.get_by_id(entry_id, ctx)
            if entry is None:
                raise NotFoundError(
                    f"Index entry {entry_id} not found", code=ErrorCode.INDEX_ENTRY_NOT_FOUND
                )

            entry.tags = dict(tags or {})
            index.update(entry, ctx)
        except Exception as e:
            return self._fail("tag update", ErrorCode.INDEX_UPDATE_FAILED, e, entry_id)

        logger.info(f"Updated tags for index entry {entry_id}")
        return Result.ok(entry, "Tags updated successfully.")

    def update_metadata(
        self, entry_id: str, metadata: dict[str, str], ctx: RunContext | None = None
    ) -> Result[DocumentIndexEntry]:
        """Replace the entry's custom metadata wholesale (no merge)."""
        try:
            index = self._require_index()
            entry_id = _parse_entry_id(entry_id)
            entry = index.get_by_id(entry_id, ctx)
            if entry is None:
                raise NotFoundError(
                    f"Index entry {entry_id} not found", code=ErrorCode.INDEX_ENTRY_NOT_FOUND
                )

            entry.custom_metadata = dict(metadata or {})
            index.update(entry, ctx)
        except Exception as e:
            return self._fail("metadata update", ErrorCode.INDEX_UPDATE_FAILED, e, entry_id)

        logger.info(f"Updated custom metadata for index entry {entry_id}")
        return Result.ok(entry, "Metadata updated successfully.")

    def search_index(
        self, query: DocumentIndexQuery, ctx: RunContext | None = None
    ) -> Result[PagedResult[DocumentIndexEntry]]:
        try:
            index = self._require_index()
            if query.page < 1 or query.page_size < 1 or query.page_size > self._max_page_size:
                raise ValidationError(
                    f"Invalid page ({query.page}) or page size ({query.page_size})",
                    code=ErrorCode.INVALID_PAGINATION,
                )

            entries = index.search(query, ctx)
            total = index.count(query, ctx)
        except Exception as e:
            return self._fail("index search", ErrorCode.INDEX_QUERY_FAILED, e)

        return Result.ok(
            PagedResult(
                results=entries,
                current_page=query.page,
                page_size=query.page_size,
                total=total,
            )
        )
