"""Application error taxonomy.

Every domain error carries a machine-readable ``kind`` (shared across
modules), a specific ``code`` and a human-readable ``message``. The API layer
renders them with a single exception handler (see ``src.main``).
"""

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    """Machine-readable error categories."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    INTERNAL = "internal"


ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def kind_for_status(status_code: int) -> ErrorKind:
    """Map a framework-raised HTTP status code to an error kind.

    A bare 400 from the framework is a malformed request, not a domain state
    error. Any other unmapped 4xx is a client error; only 5xx is internal.
    """
    if status_code == status.HTTP_400_BAD_REQUEST:
        return ErrorKind.VALIDATION
    for kind, code in ERROR_STATUS_CODES.items():
        if code == status_code:
            return kind
    if status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
        return ErrorKind.VALIDATION
    return ErrorKind.INTERNAL


class AppError(Exception):
    """Base application error."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, code: str = "app_error"):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_CODES[self.kind]


class UnauthorizedError(AppError):
    """No session, or the session token is invalid."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "unauthorized")


class ForbiddenError(AppError):
    """Authenticated, but the role does not allow the operation."""

    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, "forbidden")


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class InvalidStateError(AppError):
    kind = ErrorKind.INVALID_STATE


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
