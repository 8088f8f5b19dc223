"""
Error catalogue: maps stable error codes to caller-facing messages.

The catalogue is loaded once at startup from a JSON document of the form
{"STORAGE": [{"code": "STR-002", "message": "..."}, ...]} and passed to the
services that build result envelopes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from loguru import logger

from .errors import ErrorCode
from .result import Result

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "errors.json"
FALLBACK_MESSAGE = "An unexpected error occurred."


@dataclass(frozen=True)
class ErrorInfo:
    code: str
    message: str


class ErrorCatalog:
    """Read-only lookup of error messages by code (case-insensitive)."""

    def __init__(self, messages: Mapping[str, str]):
        self._messages = MappingProxyType({code.upper(): msg for code, msg in messages.items()})

    @classmethod
    def load_from_file(cls, path: str | Path | None = None) -> "ErrorCatalog":
        """
        Load the catalogue from a JSON file.

        Args:
            path: Catalogue location; the bundled errors.json when omitted.

        Raises:
            FileNotFoundError: If the catalogue file does not exist.
        """
        catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
        if not catalog_path.exists():
            raise FileNotFoundError(f"Error catalogue not found at: {catalog_path}")

        document = json.loads(catalog_path.read_text(encoding="utf-8"))
        messages: dict[str, str] = {}
        for item in document.get("STORAGE", []):
            code = item.get("code")
            if code and code.strip():
                messages[code] = item.get("message") or FALLBACK_MESSAGE

        logger.info(f"Loaded {len(messages)} error codes from {catalog_path}")
        return cls(messages)

    def get_error(self, code: str) -> ErrorInfo:
        """Return the entry for `code`, falling back to the generic entry."""
        message = self._messages.get(code.upper())
        if message is not None:
            return ErrorInfo(code, message)

        fallback = self._messages.get(ErrorCode.GENERIC_UNEXPECTED)
        if fallback is not None:
            return ErrorInfo(ErrorCode.GENERIC_UNEXPECTED, fallback)

        return ErrorInfo(code, FALLBACK_MESSAGE)

    def fail(self, code: str) -> Result:
        error = self.get_error(code)
        return Result.fail(error.message, error.code)
