"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    ├── NotFoundError - Resource not found
    ├── ConflictError - State conflicts (duplicates, concurrent creation)
    └── PersistenceError - Storage unavailable or failed

Usage:
    from core.exceptions import ValidationError, PersistenceError

    raise ValidationError("Message text cannot be empty", error_code="EMPTY_TEXT")

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Message text cannot be empty",
                "error_code": "EMPTY_TEXT",
                "details": {"field": "text"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Missing or malformed identifiers
    - Empty or oversized content
    - Business rule violations (sender outside the conversation, etc.)

    Note:
        For DRF serializer validation, use DRF's built-in validation.
        Use this for service-layer and store-layer validation logic.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Note:
        Prefer returning None or empty results for list queries.
        Use NotFoundError for single-resource lookups where existence is expected.
    """

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Duplicate entries (unique constraint violations)
    - Concurrent creation races

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"


class PersistenceError(BaseApplicationError):
    """
    Raised when the underlying storage fails.

    Use for:
    - Database unavailable or connection dropped
    - Statement timeouts
    - Unexpected driver errors

    Example:
        try:
            Message.objects.create(...)
        except DatabaseError as e:
            raise PersistenceError(
                "Could not store message",
                details={"original_error": str(e)},
            ) from e

    Note:
        Log the original error but don't expose driver details to clients.
        HTTP 503 Service Unavailable is appropriate.
    """

    default_error_code: str = "PERSISTENCE_ERROR"
