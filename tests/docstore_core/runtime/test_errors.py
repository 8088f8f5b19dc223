"""Unit tests for the ServiceError hierarchy."""

import pytest

from docstore_core.runtime.errors import (
    BackendError,
    ErrorCode,
    IndexStoreError,
    IntegrityError,
    NotFoundError,
    OperationCancelledError,
    ServiceError,
    ValidationError,
)


class TestServiceError:
    """Tests for ServiceError base class."""

    def test_defaults_to_generic_code(self):
        error = ServiceError("Something went wrong")

        assert error.code == ErrorCode.GENERIC_UNEXPECTED
        assert error.message_safe == "Something went wrong"
        assert error.message_debug is None
        assert error.cause is None
        assert error.debug_id is not None

    def test_create_with_all_fields(self):
        cause = ValueError("underlying error")
        error = ServiceError(
            "Safe message",
            code=ErrorCode.UPLOAD_FAILED,
            message_debug="Detailed debug info",
            cause=cause,
            debug_id="custom-id",
        )

        assert error.code == "STR-003"
        assert error.message_debug == "Detailed debug info"
        assert error.cause is cause
        assert error.debug_id == "custom-id"

    def test_str_representation(self):
        error = ServiceError("My message", code="STR-007")

        assert str(error) == "[STR-007] My message"


class TestErrorSubclasses:
    """Tests for the default codes of each error kind."""

    @pytest.mark.parametrize(
        "error_cls, expected",
        [
            (NotFoundError, ErrorCode.OBJECT_NOT_FOUND),
            (IntegrityError, ErrorCode.INTEGRITY_CHECK_FAILED),
            (IndexStoreError, ErrorCode.INDEX_UPDATE_FAILED),
            (OperationCancelledError, ErrorCode.OPERATION_CANCELLED),
            (BackendError, ErrorCode.GENERIC_UNEXPECTED),
        ],
    )
    def test_default_codes(self, error_cls, expected):
        assert error_cls("x").code == expected

    def test_explicit_code_overrides_default(self):
        error = ValidationError("Bucket name is required", code=ErrorCode.INVALID_BUCKET)

        assert error.code == "STR-008"

    def test_subclasses_are_service_errors(self):
        for error_cls in (ValidationError, NotFoundError, BackendError, IntegrityError):
            assert issubclass(error_cls, ServiceError)
