"""
Base Service.

Base class for all services providing common patterns for business logic.
Services orchestrate repositories, enforce invariants, and implement
business rules. The acting user is always an explicit argument.

Usage:
    from notevault.backend.services.base import BaseService, FieldErrors

    class TagService(BaseService):
        def __init__(self, session: AsyncSession) -> None:
            super().__init__(session)
            self.repo = TagRepository(session)

        async def create_tag(self, user: User, name: str) -> Tag:
            errors = FieldErrors()
            errors.require("name", name)
            errors.raise_if_any()
            return await self._execute_db_operation(
                "create_tag", self.repo.create(user_id=user.id, name=name)
            )
"""

from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.backend.core.exceptions import (
    ConflictError,
    DatabaseError,
    ValidationError,
)
from notevault.backend.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class FieldErrors:
    """
    Collects field-level validation messages before any write.

    Checks append; raise_if_any() raises a single ValidationError carrying
    every collected {field, message} entry.
    """

    def __init__(self) -> None:
        self._errors: list[dict[str, str]] = []

    def __bool__(self) -> bool:
        return bool(self._errors)

    def add(self, field: str, message: str) -> None:
        self._errors.append({"field": field, "message": message})

    def require(self, field: str, value: Any) -> bool:
        """Record a blank value. Returns True when the value is present."""
        if value is None or (isinstance(value, str) and not value.strip()):
            self.add(field, "can't be blank")
            return False
        return True

    def max_length(self, field: str, value: str | None, limit: int) -> None:
        if value is not None and len(value) > limit:
            self.add(field, f"is too long (maximum is {limit} characters)")

    def min_length(self, field: str, value: str | None, limit: int) -> None:
        if value is not None and len(value) < limit:
            self.add(field, f"is too short (minimum is {limit} characters)")

    def positive(self, field: str, value: int | None) -> None:
        if value is not None and value <= 0:
            self.add(field, "must be greater than 0")

    def raise_if_any(self, message: str = "Validation failed") -> None:
        if self._errors:
            raise ValidationError(message, errors=list(self._errors))


class BaseService:
    """
    Base class for all services.

    Provides:
    - Database session management
    - Logging context
    - Error wrapping for database operations

    Subclasses should:
    - Call super().__init__(session) in their __init__
    - Initialize repositories in __init__
    - Implement business logic methods
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the service with a database session.

        Args:
            session: SQLAlchemy async session for database operations
        """
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    @property
    def session(self) -> AsyncSession:
        """Get the database session."""
        return self._session

    async def _execute_db_operation(
        self,
        operation: str,
        coro: Any,
        unique_field: tuple[str, str] | None = None,
    ) -> T:
        """
        Execute a database operation with error handling.

        Wraps database operations to convert SQLAlchemy exceptions
        to application-specific exceptions.

        Args:
            operation: Description of the operation for logging
            coro: Coroutine to execute
            unique_field: (field, message) reported as a ValidationError
                when the operation hits a unique constraint

        Returns:
            Result of the coroutine

        Raises:
            ValidationError: For unique constraint violations with unique_field
            ConflictError: For other unique constraint violations
            DatabaseError: For other database errors
        """
        try:
            return await coro
        except IntegrityError as e:
            self._logger.warning(
                "Database integrity error",
                extra={"operation": operation, "error": str(e)},
            )
            error_str = str(e).lower()
            if "unique" in error_str or "duplicate" in error_str:
                if unique_field is not None:
                    raise ValidationError.for_field(*unique_field) from e
                raise ConflictError("Resource already exists") from e
            raise DatabaseError(f"Database constraint violation: {operation}") from e
        except SQLAlchemyError as e:
            self._logger.error(
                "Database error",
                extra={"operation": operation, "error": str(e)},
            )
            raise DatabaseError(f"Database operation failed: {operation}") from e

    def _validate_required(
        self,
        fields: dict[str, Any],
        field_names: list[str],
    ) -> None:
        """
        Validate that required fields are present and not empty.

        Raises:
            ValidationError: If any required field is missing or empty
        """
        errors = FieldErrors()
        for name in field_names:
            errors.require(name, fields.get(name))
        errors.raise_if_any("Required fields missing")

    def _log_operation(
        self,
        operation: str,
        **context: Any,
    ) -> None:
        """
        Log a service operation with context.

        Args:
            operation: Description of the operation
            **context: Additional context to include in log
        """
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, **context},
        )

    def _log_debug(
        self,
        message: str,
        **context: Any,
    ) -> None:
        """Log debug information."""
        self._logger.debug(
            message,
            extra={"service": self.__class__.__name__, **context},
        )
