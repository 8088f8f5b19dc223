"""
FastAPI application for the docstore gateway.

Mounts the document storage and document index routers, logs every
request, and turns any unhandled exception into a generic STR-000
envelope without exception detail.

Usage:
    uvicorn app.main:app --reload --port 8080
"""

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from app.documents.dependencies import REQUEST_ID_HEADER
from app.documents.routes import router as documents_router
from docstore_core.config import settings
from docstore_core.logging import setup_logging
from docstore_core.runtime.errors import ErrorCode

# Initialize logging
setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Docstore Gateway",
    description="Uniform document storage with optional encryption at rest and a searchable index",
    version="1.0.0",
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Assign a request id and log method, path, status and duration."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} "
        f"({elapsed_ms:.1f} ms)"
    )
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.opt(exception=exc).error(
        f"[{request_id}] Unhandled error on {request.method} {request.url.path}"
    )
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "An unexpected error occurred.",
            "error_code": ErrorCode.GENERIC_UNEXPECTED,
            "data": None,
        },
    )


# Mount the documents and index routers (routes carry their own prefixes)
app.include_router(documents_router)


@app.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
        dict: Status and service information.
    """
    return {"status": "ok", "service": settings.SERVICE_NAME, "version": "1.0.0"}
