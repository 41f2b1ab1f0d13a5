"""
Custom exception classes for the application.

Every application exception carries an http_status so that the HTTP layer
can translate it without inspecting messages.
"""


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    Attributes:
        message: Human-readable error message.
        http_status: HTTP status code for REST API responses.
    """

    http_status: int = 500

    def __init__(self, message: str):
        """
        Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class ValidationError(AppException):
    """
    Data validation failed.

    Raised when required input is missing or empty, before any store access.

    HTTP Status: 400 Bad Request
    """

    http_status = 400


class NotFoundError(AppException):
    """
    Resource not found.

    Raised when a referenced author, alias or origin does not exist.

    HTTP Status: 404 Not Found
    """

    http_status = 404


class ConflictError(AppException):
    """
    Resource conflict.

    Raised when a requested transition violates an alias invariant (origin
    is itself an alias, alias is itself an origin, self-alias, ...).

    HTTP Status: 409 Conflict
    """

    http_status = 409


class NotApplicableError(ConflictError):
    """
    Query does not apply to the author's current alias state.

    Raised e.g. when asking a combined alias for its single origin.

    HTTP Status: 409 Conflict
    """
