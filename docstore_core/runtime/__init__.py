"""
Service runtime layer for the docstore gateway.

This package provides the shared plumbing for error handling and
request scoping:
- RunContext: Request-scoped context with correlation ID and deadline
- ServiceError and its subclasses: the error taxonomy
- ErrorCatalog: Code to message lookup for result envelopes
- Result / PagedResult: The envelope returned by every public operation
"""

from .catalog import ErrorCatalog, ErrorInfo
from .context import RunContext
from .errors import (
    BackendError,
    ErrorCode,
    IndexStoreError,
    IntegrityError,
    NotFoundError,
    OperationCancelledError,
    ServiceError,
    ValidationError,
)
from .result import PagedResult, Result

__all__ = [
    "RunContext",
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "BackendError",
    "IntegrityError",
    "IndexStoreError",
    "OperationCancelledError",
    "ErrorCode",
    "ErrorCatalog",
    "ErrorInfo",
    "Result",
    "PagedResult",
]
