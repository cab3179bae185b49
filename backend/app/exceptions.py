"""Custom exception classes for the key checker.

Only structurally invalid requests surface as errors. Everything that
goes wrong while validating an individual key is reduced to
``isValid: false`` for that key and never raised to the caller.

CRITICAL: Error messages must NEVER contain key values.
"""

from __future__ import annotations

from typing import Any


class KeyCheckBaseError(Exception):
    """Base exception for the key checker."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class MalformedJSONError(KeyCheckBaseError):
    """Request body is not valid JSON."""

    def __init__(self) -> None:
        super().__init__(
            code="MALFORMED_JSON",
            message="Invalid JSON in request body.",
            status_code=400,
        )


class InvalidBatchError(KeyCheckBaseError):
    """Batch payload does not carry a list of string keys."""

    def __init__(
        self,
        message: str = 'Invalid request body: "keys" should be an array of strings.',
    ) -> None:
        super().__init__(
            code="INVALID_BATCH",
            message=message,
            status_code=400,
        )
