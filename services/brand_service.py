"""
Brand and category reference handling.

The catalog holds brand names as attribute values under several brand
attributes, so the same brand often exists more than once ("Hvid",
"HVID ", "hvid"). This module collapses those near-duplicates and builds
the per-run classification context (default category, default brand,
candidate scope) for a supplier.
"""

from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence
import re
import structlog

from config import settings
from models.catalog import CandidateScope, ReferenceEntity
from models.reconciliation import (
    BrandOverviewResponse,
    ClassificationContext,
    DuplicateReferenceGroup,
)
from services.catalog_store_service import CatalogStore, SupabaseCatalogStore
from utils.text_utils import normalize

logger = structlog.get_logger(__name__)

MatchConfidence = Literal["exact", "fuzzy"]

ARTICLE_PATTERN = re.compile(r"^(the|a|an)$", re.IGNORECASE)


# ===================
# DEDUPLICATION
# ===================

@dataclass
class DeduplicationResult:
    """
    Canonicalized reference entities.

    Attributes:
        id_to_canonical_name: Every input id → first-seen name of its key (trimmed)
        unique_list: One entity per key, first-seen id and name
        duplicate_groups: Keys shared by more than one entity
    """
    id_to_canonical_name: dict[int, str] = field(default_factory=dict)
    unique_list: list[ReferenceEntity] = field(default_factory=list)
    duplicate_groups: list[DuplicateReferenceGroup] = field(default_factory=list)


def deduplicate_references(entities: Sequence[ReferenceEntity]) -> DeduplicationResult:
    """
    Collapse entities whose names differ only by case or outer whitespace.

    Deterministic, and a fixed point on its own unique_list.

    Args:
        entities: Brand or category entities in catalog order

    Returns:
        DeduplicationResult
    """
    groups: dict[str, list[ReferenceEntity]] = {}
    for entity in entities:
        groups.setdefault(normalize(entity.name), []).append(entity)

    result = DeduplicationResult()
    for members in groups.values():
        # ReferenceEntity strips names on construction, so the canonical
        # name is the first-seen name without outer whitespace
        first = members[0]
        for member in members:
            result.id_to_canonical_name[member.id] = first.name
        result.unique_list.append(first)
        if len(members) > 1:
            result.duplicate_groups.append(DuplicateReferenceGroup(
                canonical_name=first.name,
                entities=tuple(members),
            ))

    if result.duplicate_groups:
        logger.info(
            "duplicate_references_found",
            groups=len(result.duplicate_groups),
            total=len(entities),
            unique=len(result.unique_list)
        )

    return result


# ===================
# BRAND MATCHING
# ===================

def extract_brand_from_name(name: Optional[str]) -> Optional[str]:
    """
    Extract the brand from a "Brand - Description" product name.

    - "Hvid - Beanie Fonzie" → "Hvid"
    - "A - Thing" → None (one letter)
    - "The - Thing" → None (article)

    Returns:
        Brand name, or None when the name has no usable prefix
    """
    if not name:
        return None
    parts = name.split(" - ")
    if len(parts) < 2:
        return None

    extracted = parts[0].strip()
    if len(extracted) > 1 and not ARTICLE_PATTERN.match(extracted):
        return extracted
    return None


def find_matching_reference(
    name: Optional[str],
    entities: Sequence[ReferenceEntity],
) -> Optional[tuple[ReferenceEntity, MatchConfidence]]:
    """
    Find the entity a free-text brand or category name refers to.

    Exact normalized match first, then containment in either direction.

    Args:
        name: Suggested name (supplier name, extracted brand)
        entities: Entities to search, in priority order

    Returns:
        (entity, "exact" | "fuzzy"), or None
    """
    needle = normalize(name)
    if not needle:
        return None

    for entity in entities:
        if normalize(entity.name) == needle:
            return entity, "exact"

    for entity in entities:
        candidate = normalize(entity.name)
        if candidate and (needle in candidate or candidate in needle):
            return entity, "fuzzy"

    return None


# ===================
# SERVICE
# ===================

class BrandService:
    """
    Brand lookups and classification context assembly.
    """

    def __init__(self, store: CatalogStore, fallback_category_name: Optional[str] = None):
        self.store = store
        self.fallback_category_name = fallback_category_name or settings.fallback_category_name

    def get_brands(self) -> DeduplicationResult:
        """Deduplicated brand values from the catalog."""
        brands = self.store.list_brand_values()
        logger.info("brand_values_loaded", count=len(brands))
        return deduplicate_references(brands)

    def brand_overview(self) -> BrandOverviewResponse:
        """
        Brand values with near-duplicates collapsed.

        Returns:
            BrandOverviewResponse for the back-office brand screen
        """
        brands = self.store.list_brand_values()
        deduplicated = deduplicate_references(brands)
        return BrandOverviewResponse(
            brands=deduplicated.unique_list,
            duplicate_groups=deduplicated.duplicate_groups,
            total_values=len(brands),
        )

    def find_category(self, supplier_name: str) -> Optional[ReferenceEntity]:
        """First category whose complete name contains the supplier name."""
        needle = normalize(supplier_name)
        if not needle:
            return None
        for category in self.store.search_categories(supplier_name):
            if needle in normalize(category.name):
                return category
        return None

    def find_fallback_category(self) -> Optional[ReferenceEntity]:
        """Category named by settings.fallback_category_name, if any."""
        if not self.fallback_category_name:
            return None
        matches = self.store.search_categories(self.fallback_category_name)
        match = find_matching_reference(self.fallback_category_name, matches)
        return match[0] if match else None

    def find_brand(self, supplier_name: str) -> Optional[ReferenceEntity]:
        """Brand value for a supplier, from the deduplicated brand list."""
        unique_brands = self.get_brands().unique_list
        match = find_matching_reference(supplier_name, unique_brands)
        if match is None:
            logger.warning("supplier_brand_not_found", supplier=supplier_name)
            return None

        brand, confidence = match
        logger.info(
            "supplier_brand_matched",
            supplier=supplier_name,
            brand=brand.name,
            confidence=confidence
        )
        return brand

    def build_context(
        self,
        supplier_name: str,
        fallback_category: Optional[ReferenceEntity] = None,
    ) -> ClassificationContext:
        """
        Build the classification context for a supplier.

        Args:
            supplier_name: Supplier / brand name from the document
            fallback_category: Used when no category matches the supplier

        Returns:
            ClassificationContext whose candidate scope is the supplier
            category
        """
        category = self.find_category(supplier_name)
        if category is None:
            category = fallback_category or self.find_fallback_category()
            logger.info(
                "supplier_category_fallback",
                supplier=supplier_name,
                category=category.name if category else None
            )
        brand = self.find_brand(supplier_name)

        # Candidates are templates filed under the supplier category
        scope = CandidateScope(category_name=supplier_name)

        logger.info(
            "classification_context_built",
            supplier=supplier_name,
            category=category.name if category else None,
            brand=brand.name if brand else None,
            scope=scope.category_name
        )
        return ClassificationContext(
            default_category=category,
            default_brand=brand,
            candidate_scope=scope,
        )


# Singleton instance
_service: Optional[BrandService] = None


def get_brand_service() -> BrandService:
    """Get or create BrandService instance."""
    global _service
    if _service is None:
        _service = BrandService(
            SupabaseCatalogStore(settings.brand_attribute_markers)
        )
    return _service
