"""
Request-scoped context for gateway operations.

RunContext carries the correlation ID, the calling user, and the deadline
by which the operation must finish. The deadline is the cancellation signal:
services check it before every backend and index call, and the index turns
the remaining budget into a database statement timeout.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel

from .errors import OperationCancelledError


class RunContext(BaseModel):
    """Request-scoped context for service operations.

    Attributes:
        request_id: Unique identifier for request tracing.
        user_id: Optional caller identity, recorded as uploaded_by.
        deadline: Optional absolute deadline for the operation.
    """

    request_id: str
    user_id: str | None = None
    deadline: datetime | None = None

    model_config = {"frozen": True}

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        request_id: str | None = None,
        user_id: str | None = None,
    ) -> "RunContext":
        """Create a context whose deadline is `seconds` from now."""
        return cls(
            request_id=request_id or str(uuid.uuid4()),
            user_id=user_id,
            deadline=datetime.now(timezone.utc) + timedelta(seconds=seconds),
        )

    def remaining_seconds(self) -> float | None:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        deadline = self.deadline
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)
        return (deadline - datetime.now(timezone.utc)).total_seconds()

    def is_expired(self) -> bool:
        remaining = self.remaining_seconds()
        return remaining is not None and remaining <= 0

    def raise_if_expired(self, operation: str) -> None:
        """Abort before starting `operation` if the deadline has passed.

        Raises:
            OperationCancelledError: If the deadline has expired.
        """
        if self.is_expired():
            raise OperationCancelledError(
                f"Deadline expired before {operation}",
                message_debug=f"request_id={self.request_id} deadline={self.deadline}",
            )
