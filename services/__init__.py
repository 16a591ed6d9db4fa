"""
Business logic services.

Each service handles one step of supplier document reconciliation.
"""

from services.catalog_store_service import (
    CatalogStore,
    InMemoryCatalogStore,
    SupabaseCatalogStore,
)
from services.matching_service import BaseProductMatch, find_base_product
from services.attribute_service import (
    AttributeCache,
    load_attribute_lines,
    make_brand_attribute_predicate,
    resolve_attributes,
)
from services.brand_service import (
    BrandService,
    DeduplicationResult,
    deduplicate_references,
    extract_brand_from_name,
    find_matching_reference,
    get_brand_service,
)
from services.classification_service import (
    ClassificationService,
    get_classification_service,
)

__all__ = [
    "CatalogStore",
    "InMemoryCatalogStore",
    "SupabaseCatalogStore",
    "BaseProductMatch",
    "find_base_product",
    "AttributeCache",
    "load_attribute_lines",
    "make_brand_attribute_predicate",
    "resolve_attributes",
    "BrandService",
    "DeduplicationResult",
    "deduplicate_references",
    "extract_brand_from_name",
    "find_matching_reference",
    "get_brand_service",
    "ClassificationService",
    "get_classification_service",
]
