"""
Exception hierarchy for the Task Manager API.

Services raise these exceptions; the application factory registers a single
error handler that turns any ``TaskManagerError`` into the standard
``{"error": "..."}`` JSON envelope with the exception's ``status_code``.

Exception Hierarchy:
    TaskManagerError (base, 500)
    ├── ValidationError         - 400, request payload rejected
    │   ├── MissingFieldError
    │   ├── InvalidEnumValueError
    │   ├── InvalidDateFormatError
    │   ├── InvalidNumberError
    │   ├── InvalidFilterValueError
    │   ├── InvalidFieldValueError
    │   └── ValidationFailedError - carries per-field messages
    ├── UnauthenticatedError    - 401, missing/invalid bearer token
    └── DuplicateEmailError     - 409, email already registered

"Not found" is deliberately absent: services return ``None``/``False`` and
the routes answer 404.
"""

from __future__ import annotations

from typing import Any


class TaskManagerError(Exception):
    """Base exception for all errors surfaced to API clients.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status the error maps to.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error envelope for this exception."""
        return {"error": self.message}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r})"


class ValidationError(TaskManagerError):
    """Raised when client input fails validation (HTTP 400)."""

    status_code: int = 400


class MissingFieldError(ValidationError):
    """Raised when a required field is absent or blank."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"'{field}' is required")


class InvalidEnumValueError(ValidationError):
    """Raised when a value is not a member of a closed enumeration."""

    def __init__(self, field: str, value: Any, allowed: list[str]) -> None:
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(f"Invalid {field} value: {value!r}. Must be one of: {allowed}")


class InvalidDateFormatError(ValidationError):
    """Raised when a timestamp field is not ISO-8601."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid date format for {field}: {value!r}. "
            "Use ISO format (YYYY-MM-DDTHH:MM:SS)"
        )


class InvalidNumberError(ValidationError):
    """Raised when a numeric field receives a non-numeric value."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} value: {value!r}. Must be a number")


class InvalidFilterValueError(ValidationError):
    """Raised when a list filter cannot be parsed."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} filter value: {value!r}")


class InvalidFieldValueError(ValidationError):
    """Raised for other per-field rule violations (length, type)."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class ValidationFailedError(ValidationError):
    """Raised when entity-level validation rejects several fields at once.

    Attributes:
        errors: Mapping of field name to a list of messages.
    """

    def __init__(
        self,
        errors: dict[str, list[str]],
        message: str = "Validation failed",
    ) -> None:
        self.errors = errors
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "errors": self.errors}


class UnauthenticatedError(TaskManagerError):
    """Raised when a request lacks valid credentials (HTTP 401)."""

    status_code: int = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class DuplicateEmailError(TaskManagerError):
    """Raised when registering an email that already exists (HTTP 409)."""

    status_code: int = 409

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("Email already exists")
