"""
Error hierarchy for VortexBoard.

Every error raised on purpose by route handlers and dependencies is an
AppError carrying the HTTP status it maps to. The global handlers in main.py
render all of them, plus framework and unexpected errors, into the single
envelope ``{"success": false, "error": <message>}``.
"""

from fastapi import status


class AppError(Exception):
    """Base exception for expected request failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> dict:
        return error_envelope(self.message)


class ValidationError(AppError):
    """Malformed or missing input. Several messages are joined into one."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | list[str]):
        if isinstance(message, list | tuple):
            self.messages = list(message)
            message = ", ".join(self.messages)
        else:
            self.messages = [message]
        super().__init__(message)


class AuthenticationError(AppError):
    """Missing, invalid or expired credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    """Valid identity without sufficient permission."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


def error_envelope(message: str) -> dict:
    return {"success": False, "error": message}


__all__ = [
    "AppError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "error_envelope",
]
