"""
FastAPI dependencies and response helpers shared by the documents routers.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.documents.schemas import to_envelope
from docstore_core.config import settings
from docstore_core.runtime.context import RunContext
from docstore_core.runtime.errors import ErrorCode
from docstore_core.runtime.result import Result

REQUEST_ID_HEADER = "X-Request-Id"
USER_ID_HEADER = "X-User-Id"

_STATUS_BY_CODE = {
    # Caller input
    ErrorCode.INVALID_KEY: 400,
    ErrorCode.INVALID_BUCKET: 400,
    ErrorCode.CONTENT_EMPTY: 400,
    ErrorCode.CONTENT_TYPE_MISSING: 400,
    ErrorCode.INVALID_PAGINATION: 400,
    ErrorCode.INVALID_EXPIRY: 400,
    ErrorCode.CONTENT_TOO_LARGE: 413,
    # Missing things
    ErrorCode.BUCKET_NOT_FOUND: 404,
    ErrorCode.OBJECT_NOT_FOUND: 404,
    ErrorCode.INDEX_ENTRY_NOT_FOUND: 404,
    ErrorCode.INDEXING_DISABLED: 409,
    ErrorCode.INTEGRITY_CHECK_FAILED: 422,
    ErrorCode.OPERATION_CANCELLED: 504,
    # Storage backend or index unavailable
    ErrorCode.UPLOAD_FAILED: 502,
    ErrorCode.DOWNLOAD_FAILED: 502,
    ErrorCode.DELETE_FAILED: 502,
    ErrorCode.BUCKET_CREATION_FAILED: 502,
    ErrorCode.PRESIGNED_URL_FAILED: 502,
    ErrorCode.LIST_OBJECTS_FAILED: 502,
    ErrorCode.METADATA_RETRIEVAL_FAILED: 502,
    ErrorCode.INDEX_QUERY_FAILED: 502,
    ErrorCode.INDEX_UPDATE_FAILED: 502,
}


def status_for(error_code: str | None) -> int:
    """HTTP status for a failed result's error code; 500 for anything unmapped."""
    if not error_code:
        return 500
    return _STATUS_BY_CODE.get(error_code.upper(), 500)


def get_run_context(request: Request) -> RunContext:
    """Build the per-request context: correlation id, caller, and deadline."""
    request_id = getattr(request.state, "request_id", None) or request.headers.get(
        REQUEST_ID_HEADER
    )
    return RunContext.with_timeout(
        settings.REQUEST_TIMEOUT_SECONDS,
        request_id=request_id,
        user_id=request.headers.get(USER_ID_HEADER) or None,
    )


def respond(result: Result, data: Any = None, status_code: int = 200) -> JSONResponse:
    """Render a service result as a JSON envelope with a matching status code."""
    status = status_code if result.success else status_for(result.error_code)
    return JSONResponse(status_code=status, content=jsonable_encoder(to_envelope(result, data)))
