"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, FrozenSchema
from models.catalog import (
    AttributeLine,
    AttributeValue,
    CandidateScope,
    CatalogProduct,
    ReferenceEntity,
    TemplateAttributeLine,
)
from models.reconciliation import (
    AttributeChoice,
    BarcodeCount,
    BrandOverviewResponse,
    CatalogDuplicate,
    ClassificationContext,
    ClassificationResult,
    ClassificationSummary,
    ClassifiedLine,
    ClassifyRequest,
    CreateProduct,
    CreateVariant,
    DuplicateReferenceGroup,
    InputLine,
    LineError,
    MatchStrategy,
    UpdateStock,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",
    # Catalog
    "AttributeLine",
    "AttributeValue",
    "CandidateScope",
    "CatalogProduct",
    "ReferenceEntity",
    "TemplateAttributeLine",
    # Reconciliation
    "AttributeChoice",
    "BarcodeCount",
    "BrandOverviewResponse",
    "CatalogDuplicate",
    "ClassificationContext",
    "ClassificationResult",
    "ClassificationSummary",
    "ClassifiedLine",
    "ClassifyRequest",
    "CreateProduct",
    "CreateVariant",
    "DuplicateReferenceGroup",
    "InputLine",
    "LineError",
    "MatchStrategy",
    "UpdateStock",
]
