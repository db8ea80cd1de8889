"""Structured exceptions for the Mattermost SDK."""

from __future__ import annotations

from typing import Any, Optional


class ApiError(Exception):
    """Base exception for all Mattermost API errors."""

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: Any = None,
        request_id: Optional[str] = None,
        error_id: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.request_id = request_id
        self.error_id = error_id
        super().__init__(f"[{status_code}] {message}")


class BadRequestError(ApiError):
    """400 Bad Request — invalid parameters or a conflicting resource."""
    pass


class AuthError(ApiError):
    """401 Unauthorized — missing, expired or invalid token."""
    pass


class ForbiddenError(ApiError):
    """403 Forbidden — the token lacks the required permission."""
    pass


class NotFoundError(ApiError):
    """404 Not Found — no team, user or channel with that name."""
    pass


class ServerError(ApiError):
    """500+ — server-side error."""
    pass


class ErrorEnvelope(ApiError):
    """2xx response whose body is an error object (``status_code`` set)."""
    pass


class InvalidResponseError(ApiError):
    """Body is not JSON or does not have the shape of the expected record."""
    pass


class AuthenticationError(Exception):
    """Every login strategy came back without a session token."""
    pass
