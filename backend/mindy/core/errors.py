"""Error taxonomy shared by services, routes and the HTTP client."""
from __future__ import annotations

from fastapi import status


class MindyError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MindyError):
    """Malformed input: missing fields, zero parsed tasks, bad flags."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(MindyError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class AuthorizationError(MindyError):
    """Caller is not the owner, or not an admin for admin-only reads."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(MindyError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UpstreamError(MindyError):
    """Failure from the database or the AI provider."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Upstream service failure"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


def error_for_status(status_code: int, message: str | None) -> MindyError:
    """Map an HTTP status received from the API back onto the taxonomy."""
    if status_code == status.HTTP_400_BAD_REQUEST or status_code == status.HTTP_422_UNPROCESSABLE_ENTITY:
        return ValidationError(message)
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return AuthenticationError(message)
    if status_code == status.HTTP_403_FORBIDDEN:
        return AuthorizationError(message)
    if status_code == status.HTTP_404_NOT_FOUND:
        return NotFoundError(message)
    return UpstreamError(message, status_code=status_code)
