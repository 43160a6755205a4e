"""
Application error taxonomy.

Each error carries the HTTP status the API boundary answers with. Data-access
code does not raise these for expected outcomes (see services.results); they are
raised by request handlers and dependencies and rendered by the handlers in
app.middleware.errors.
"""

from fastapi import status


class AppError(Exception):
    """Operational error with a client-facing message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Duplicate review, username or email."""
    status_code = status.HTTP_409_CONFLICT


class ServerError(AppError):
    """Unexpected store or configuration failure."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ServiceUnavailableError(AppError):
    """No database connection became free within the pool timeout."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
