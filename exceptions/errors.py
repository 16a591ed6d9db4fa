"""
Custom exception classes for the application.

Every error carries a stable code, a human-readable message and an HTTP
status so routes can render it without extra mapping.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "CATALOG_LOOKUP_ERROR")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CATALOG ERRORS
# ===================

class CatalogLookupError(ExternalServiceError):
    """A catalog store call failed while classifying one line."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            service="catalog_lookup",
            message=f"Catalog {operation} failed: {message}",
            details={"operation": operation, **(details or {})}
        )


# ===================
# RECONCILIATION ERRORS
# ===================

class MissingContextError(ValidationError):
    """Classification request has neither a context nor a supplier name."""

    def __init__(self):
        super().__init__(
            code="RECONCILIATION_MISSING_CONTEXT",
            message="Provide either a classification context or a supplier name",
        )


class EmptyBatchError(ValidationError):
    """Classification request contains no lines."""

    def __init__(self):
        super().__init__(
            code="RECONCILIATION_EMPTY_BATCH",
            message="At least one input line is required",
        )
