"""
Standardized error model for the docstore gateway.

This module defines the error taxonomy shared by the storage, encryption
and index layers. Every error carries a stable catalogue code so the
orchestrator can turn it into a result envelope without leaking internal
detail to callers.
"""

from __future__ import annotations

import uuid


# Error catalogue codes
class ErrorCode:
    """Stable error codes surfaced to callers in the result envelope."""

    GENERIC_UNEXPECTED = "STR-000"
    BUCKET_NOT_FOUND = "STR-001"
    OBJECT_NOT_FOUND = "STR-002"
    UPLOAD_FAILED = "STR-003"
    DOWNLOAD_FAILED = "STR-004"
    DELETE_FAILED = "STR-005"
    BUCKET_CREATION_FAILED = "STR-006"
    INVALID_KEY = "STR-007"
    INVALID_BUCKET = "STR-008"
    PRESIGNED_URL_FAILED = "STR-009"
    LIST_OBJECTS_FAILED = "STR-010"
    METADATA_RETRIEVAL_FAILED = "STR-011"
    PROVIDER_NOT_CONFIGURED = "STR-012"
    CONTENT_EMPTY = "STR-013"
    CONTENT_TYPE_MISSING = "STR-014"
    INDEX_ENTRY_NOT_FOUND = "STR-015"
    INDEX_QUERY_FAILED = "STR-016"
    INDEX_UPDATE_FAILED = "STR-017"
    INDEXING_DISABLED = "STR-018"
    INVALID_PAGINATION = "STR-019"
    INTEGRITY_CHECK_FAILED = "STR-020"
    OPERATION_CANCELLED = "STR-021"
    INVALID_EXPIRY = "STR-022"
    CONTENT_TOO_LARGE = "STR-023"


class ServiceError(Exception):
    """Base error for the gateway.

    ServiceError carries structured information about failures:
    - code: Catalogue code (e.g., "STR-002")
    - message_safe: Human-readable message safe for logs/users
    - message_debug: Detailed debug info (never returned to callers)
    - cause: The underlying exception, if any
    - debug_id: Unique ID for support correlation
    """

    default_code = ErrorCode.GENERIC_UNEXPECTED

    def __init__(
        self,
        message_safe: str,
        code: str | None = None,
        message_debug: str | None = None,
        cause: Exception | None = None,
        debug_id: str | None = None,
    ):
        super().__init__(message_safe)
        self.code = code or self.default_code
        self.message_safe = message_safe
        self.message_debug = message_debug
        self.cause = cause
        self.debug_id = debug_id or str(uuid.uuid4())[:8]

    def __str__(self) -> str:
        return f"[{self.code}] {self.message_safe}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"message_safe={self.message_safe!r}, "
            f"debug_id={self.debug_id!r})"
        )


class ValidationError(ServiceError):
    """Malformed caller input, rejected before any backend or index call."""


class NotFoundError(ServiceError):
    """The referenced object or index entry does not exist."""

    default_code = ErrorCode.OBJECT_NOT_FOUND


class BackendError(ServiceError):
    """A storage provider call failed (network, permission, outage)."""


class IntegrityError(ServiceError):
    """Decryption authentication failed or the ciphertext blob was malformed."""

    default_code = ErrorCode.INTEGRITY_CHECK_FAILED


class IndexStoreError(ServiceError):
    """The document index could not complete a read or write."""

    default_code = ErrorCode.INDEX_UPDATE_FAILED


class OperationCancelledError(ServiceError):
    """The caller's deadline expired before the operation could finish."""

    default_code = ErrorCode.OPERATION_CANCELLED
