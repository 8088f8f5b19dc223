"""Unit tests for RunContext."""

from datetime import datetime, timedelta, timezone

import pytest

from docstore_core.runtime.context import RunContext
from docstore_core.runtime.errors import ErrorCode, OperationCancelledError


class TestRunContextCreation:
    """Tests for RunContext instantiation."""

    def test_create_with_required_fields(self):
        ctx = RunContext(request_id="req-123")

        assert ctx.request_id == "req-123"
        assert ctx.user_id is None
        assert ctx.deadline is None

    def test_context_is_immutable(self):
        ctx = RunContext(request_id="req-1")
        with pytest.raises(Exception):  # ValidationError for frozen model
            ctx.request_id = "changed"

    def test_context_without_deadline_never_expires(self):
        ctx = RunContext(request_id="req-1", user_id="alice")

        assert ctx.user_id == "alice"
        assert ctx.remaining_seconds() is None
        assert ctx.is_expired() is False

    def test_with_timeout_sets_future_deadline(self):
        ctx = RunContext.with_timeout(30, request_id="req-9")

        assert ctx.request_id == "req-9"
        assert 0 < ctx.remaining_seconds() <= 30


class TestRunContextDeadline:
    """Tests for deadline checks."""

    def test_expired_deadline_raises(self):
        ctx = RunContext(
            request_id="req-1",
            deadline=datetime.now(timezone.utc) - timedelta(seconds=1),
        )

        assert ctx.is_expired() is True
        with pytest.raises(OperationCancelledError) as exc_info:
            ctx.raise_if_expired("upload")

        assert exc_info.value.code == ErrorCode.OPERATION_CANCELLED

    def test_future_deadline_does_not_raise(self):
        ctx = RunContext.with_timeout(60)

        ctx.raise_if_expired("upload")

    def test_naive_deadline_is_treated_as_utc(self):
        naive = (datetime.now(timezone.utc) + timedelta(minutes=5)).replace(tzinfo=None)
        ctx = RunContext(request_id="req-1", deadline=naive)

        assert ctx.remaining_seconds() > 0
