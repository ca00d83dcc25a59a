"""
Error taxonomy shared by the library and the HTTP layer.

Every error carries the HTTP status it maps to; `api/errors.py` renders them
into the `{"error": ...}` envelope.
"""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str, *, details: Any = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class RateLimitedError(AppError):
    status_code = 429

    def __init__(self, message: str, *, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UnexpectedError(AppError):
    status_code = 500


class UpstreamUnavailableError(AppError):
    """The external provider (or the store) could not be reached."""

    status_code = 503


class StoreUnavailableError(UpstreamUnavailableError):
    """The Supabase store is not configured or did not answer."""


class RepositoryError(AppError):
    """The store answered with an error we did not expect."""

    status_code = 500


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing."""

    pass
