from __future__ import annotations


class AppError(Exception):
    """
    Base class for errors raised by services and stores.

    The message is safe to show to API callers; it is rendered as the
    ``{"error": message}`` body with ``status_code`` by the handlers in main.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400


class UnauthorizedError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class NotFoundError(AppError):
    """Unknown resource, or one the caller does not own."""

    status_code = 404


class ConflictError(AppError):
    """Uniqueness violation in a store."""

    status_code = 409


class StorageError(AppError):
    """A store or file write failed."""

    status_code = 500
