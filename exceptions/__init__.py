"""
Custom exceptions module.

All application errors derive from AppError.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    ExternalServiceError,
    DatabaseError,

    # Catalog
    CatalogLookupError,

    # Reconciliation
    MissingContextError,
    EmptyBatchError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "ExternalServiceError",
    "DatabaseError",

    # Catalog
    "CatalogLookupError",

    # Reconciliation
    "MissingContextError",
    "EmptyBatchError",
]
