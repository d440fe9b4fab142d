"""Error types raised by the auth gateway and mapped to HTTP responses."""
from __future__ import annotations

from typing import Optional


class AuthServiceError(Exception):
    """Base class for failures that translate into a JSON error response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AuthServiceError):
    """Raised when a request body is malformed or fails a format check."""

    status_code = 400


class ConflictError(AuthServiceError):
    """Raised when signing up an email whose storage key is already taken."""

    status_code = 400


class AuthenticationError(AuthServiceError):
    """Raised when login credentials do not match a stored record."""

    status_code = 401


class StoreError(AuthServiceError):
    """Raised when the backing document store fails or is unreachable."""

    status_code = 500

    def __init__(self, message: str, *, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class UnexpectedRecordError(StoreError):
    """Raised when a storage key holds a value that is not a user record."""


__all__ = [
    "AuthServiceError",
    "AuthenticationError",
    "ConflictError",
    "StoreError",
    "UnexpectedRecordError",
    "ValidationError",
]
