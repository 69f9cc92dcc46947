"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
Every expected outcome of a note, share, tag or version operation is one
of these; the API layer turns them into the standard error envelope.
"""

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """
    Raised when a resource cannot be found.

    Also raised when the resource exists but is not visible to the caller,
    so existence of inaccessible notes is never leaked.
    """

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """
    Raised when input violates a data-model invariant.

    `errors` is a list of {"field": ..., "message": ...} entries and is
    exposed to clients under `details.errors`.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        details: dict[str, Any] | None = None,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        self.details = dict(details or {})
        self.errors = list(errors or [])
        if self.errors:
            self.details["errors"] = self.errors
        super().__init__(message, code="VAL_VALIDATION_ERROR")

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        """Build a validation error carrying a single field message."""
        return cls(f"{field} {message}", errors=[{"field": field, "message": message}])


class AuthenticationError(ApplicationError):
    """Raised when no valid identity can be established."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class AuthorizationError(ApplicationError):
    """Raised when the resource is visible but the action is forbidden."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message, code="AUTHZ_FORBIDDEN")


class ConflictError(ApplicationError):
    """Raised when a concurrent write collides on a unique key."""

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message, code="RES_CONFLICT")


class ExternalServiceError(ApplicationError):
    """Raised when a collaborator (attachment store, broker) fails."""

    def __init__(self, message: str = "External service error") -> None:
        super().__init__(message, code="SYS_EXTERNAL_SERVICE_ERROR")


class RateLimitError(ApplicationError):
    """Raised when rate limit is exceeded."""

    def __init__(self, message: str = "Rate limit exceeded. Retry later.") -> None:
        super().__init__(message, code="RATE_LIMITED")


class DatabaseError(ApplicationError):
    """Raised when a database operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")
