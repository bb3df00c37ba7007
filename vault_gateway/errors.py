"""Vault gateway error types.

Error codes are stable strings for programmatic handling. Every error is
rendered by a single exception handler as::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": {...}}}
"""

from __future__ import annotations

from typing import Any


class VaultError(Exception):
    """Base error for all gateway exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self, request_id: str | None = None) -> dict[str, Any]:
        """Serialize to the JSON error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "request_id": request_id,
                "details": self.details,
            }
        }


class UnauthorizedError(VaultError):
    """Authentication required (401)."""

    code = "unauthorized"
    message = "Authentication required"
    status_code = 401


class AuthMissingError(UnauthorizedError):
    """No credential supplied (401)."""

    code = "auth_missing"
    message = "Missing X-API-Key header"

    reason = "missing"


class AuthInvalidError(UnauthorizedError):
    """Credential present but rejected (401).

    Unknown, inactive and expired keys share the same external message;
    ``reason`` is kept for logging only and never serialized.
    """

    code = "auth_invalid"
    message = "Invalid or expired API key"

    def __init__(self, reason: str = "invalid") -> None:
        super().__init__()
        self.reason = reason


class NotFoundError(VaultError):
    """Resource not found (404)."""

    code = "not_found"
    message = "Not found"
    status_code = 404


class MethodNotAllowedError(VaultError):
    """Mutating verb on the read-only gateway (405)."""

    code = "method_not_allowed"
    message = "Method not allowed. This API is read-only."
    status_code = 405


class ValidationError(VaultError):
    """Request validation error (400)."""

    code = "validation_error"
    message = "Validation error"
    status_code = 400


class StoreError(VaultError):
    """Underlying persistence failure.

    400 when the caller caused it (a bad statement), 500 otherwise.
    """

    code = "store_error"
    message = "Store error"
    status_code = 500

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        caller_caused: bool = False,
    ) -> None:
        super().__init__(message, details)
        if caller_caused:
            self.status_code = 400
