"""Domain exceptions rendered as ``{"error": message}`` responses.

Each subclass pins the HTTP status it maps to so route handlers can simply
raise and leave translation to the handler registered in :mod:`mediashelf.main`.
"""

from __future__ import annotations

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        if message:
            self.message = message
        super().__init__(self.message)


class UnauthorizedError(AppError):
    """No session, or a session without a user identifier."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class PayloadValidationError(AppError):
    """Request body is malformed or misses required fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request body"


class ToWatchConflictError(AppError):
    """The (user, media) pair already exists in the store."""

    status_code = status.HTTP_409_CONFLICT
    message = "Item already saved"


class DependencyFailureError(AppError):
    """A backing dependency (store, cache, catalog) failed unexpectedly."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"


class FeatureDisabledError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


__all__ = [
    "AppError",
    "DependencyFailureError",
    "FeatureDisabledError",
    "PayloadValidationError",
    "ToWatchConflictError",
    "UnauthorizedError",
]
