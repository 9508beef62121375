"""Meeting error taxonomy.

Every failure a meeting operation can report is a MeetingError subclass
carrying the HTTP status it maps to and the JSON payload the client sees.
Endpoints catch MeetingError and render it; nothing else is expected to
escape MeetingService.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError


class MeetingError(Exception):
    """Base exception for all meeting operation failures."""

    status_code: int = 400

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        return {"error": self.message}


class InvalidReference(MeetingError):
    """A reference field does not hold a well-formed identifier."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} value", context={"field": field, "value": value})


class NotFound(MeetingError):
    """The requested meeting does not exist."""

    status_code = 404

    def payload(self) -> dict[str, Any]:
        return {"message": self.message}


class NothingToDelete(MeetingError):
    """A bulk delete filter matched zero meetings."""

    status_code = 404

    def __init__(self, message: str = "No meetings found to delete.") -> None:
        super().__init__(message)

    def payload(self) -> dict[str, Any]:
        return {"message": self.message}


class StoreFailure(MeetingError):
    """Unexpected error from the storage layer, or a value it cannot cast.

    message is the short, operation-level summary; details is the string
    form of the underlying exception.
    """

    def __init__(self, message: str, original_error: Exception) -> None:
        self.original_error = original_error
        self.details = str(original_error)
        super().__init__(message, context={"error_type": type(original_error).__name__})

    def payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


# Errors a store call can raise: SQLAlchemy's own, plus driver connect
# failures (refused or reset sockets) that reach us unwrapped.
STORE_ERRORS: tuple[type[Exception], ...] = (SQLAlchemyError, OSError)
