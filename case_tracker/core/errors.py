"""
Domain-specific exceptions for the Fraud Case Tracker API.

These exceptions represent business rule violations raised by the case
workflow and are mapped to HTTP status codes in the API layer.
"""

from typing import Any


class CaseTrackerError(Exception):
    """Base exception for all case tracker domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CaseTrackerError):
    """
    Raised when input data fails validation.

    Examples:
    - Empty escalation reason
    - Assignee whose role cannot hold cases
    - Description below the configured minimum length

    HTTP Status: 400 Bad Request
    """

    pass


class NotFoundError(CaseTrackerError):
    """
    Raised when a requested resource does not exist.

    Also raised when a case exists but is not visible to the caller,
    so that case existence is never disclosed to unauthorized users.

    HTTP Status: 404 Not Found
    """

    pass


class UnauthorizedError(CaseTrackerError):
    """
    Raised when the request carries no usable acting-user identity.

    HTTP Status: 401 Unauthorized
    """

    pass


class ForbiddenError(CaseTrackerError):
    """
    Raised when the acting user is known but not allowed to perform the action.

    Examples:
    - Role lacks the permission in the permission matrix
    - Updating or closing a case the user is not assigned to
    - Viewer reading escalation history

    HTTP Status: 403 Forbidden
    """

    pass


class ConflictError(CaseTrackerError):
    """
    Raised when an operation violates a uniqueness constraint.

    Examples:
    - Duplicate txid
    - Duplicate username or email

    HTTP Status: 409 Conflict
    """

    pass


class InvalidStateError(CaseTrackerError):
    """
    Raised when a case transition is illegal for the case's current status.

    Examples:
    - Closing a case that is not resolved
    - Any transition out of a closed case

    HTTP Status: 409 Conflict
    """

    pass


ERROR_STATUS_MAP = {
    ValidationError: 400,
    UnauthorizedError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    InvalidStateError: 409,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    return ERROR_STATUS_MAP.get(type(error), 500)
