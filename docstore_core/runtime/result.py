"""
Result envelope returned by every public gateway operation.

Callers branch on `success`; `data` is only meaningful when `success`
is true.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    success: bool
    message: Optional[str] = None
    error_code: Optional[str] = None
    data: Optional[T] = None

    @classmethod
    def ok(cls, data: T, message: str | None = None) -> "Result[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str, error_code: str | None = None) -> "Result[T]":
        return cls(success=False, message=message, error_code=error_code)


@dataclass
class PagedResult(Generic[T]):
    """One page of search results plus the totals needed to page through them."""

    results: list[T] = field(default_factory=list)
    current_page: int = 1
    page_size: int = 0
    total: int = 0

    @property
    def pages(self) -> int:
        if self.page_size <= 0 or self.total <= 0:
            return 0
        return math.ceil(self.total / self.page_size)
