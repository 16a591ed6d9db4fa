"""
Unit tests for brand deduplication and context assembly.

Run: pytest tests/unit/test_brand_service.py -v
"""

import pytest

from models.catalog import ReferenceEntity
from services.brand_service import (
    BrandService,
    deduplicate_references,
    extract_brand_from_name,
    find_matching_reference,
)
from services.catalog_store_service import InMemoryCatalogStore


# ===================
# DEDUPLICATION TESTS
# ===================

class TestDeduplicateReferences:
    """Tests for deduplicate_references()"""

    @pytest.fixture
    def brands(self) -> list[ReferenceEntity]:
        return [
            ReferenceEntity(id=5, name="Hvid", source="Merk"),
            ReferenceEntity(id=6, name="HVID", source="Merk 1"),
            ReferenceEntity(id=7, name="Mini Rodini", source="Merk"),
            ReferenceEntity(id=8, name=" hvid ", source="Merk 2"),
        ]

    def test_first_seen_is_canonical(self, brands):
        """Every id maps to the first-seen name of its key."""
        result = deduplicate_references(brands)

        assert result.id_to_canonical_name == {
            5: "Hvid",
            6: "Hvid",
            7: "Mini Rodini",
            8: "Hvid",
        }

    def test_canonical_name_is_trimmed(self):
        """A padded first-seen name becomes the canonical name without padding."""
        entities = [
            ReferenceEntity(id=9, name="  Hvid ", source="Merk"),
            ReferenceEntity(id=10, name="HVID", source="Merk 1"),
        ]

        result = deduplicate_references(entities)

        assert result.id_to_canonical_name == {9: "Hvid", 10: "Hvid"}
        assert result.duplicate_groups[0].canonical_name == "Hvid"

    def test_unique_list_keeps_first_id(self, brands):
        result = deduplicate_references(brands)

        assert [entity.id for entity in result.unique_list] == [5, 7]

    def test_duplicate_groups(self, brands):
        """Keys with more than one entity are grouped."""
        result = deduplicate_references(brands)

        assert len(result.duplicate_groups) == 1
        group = result.duplicate_groups[0]
        assert group.canonical_name == "Hvid"
        assert [entity.id for entity in group.entities] == [5, 6, 8]

    def test_fixed_point(self, brands):
        """Deduplicating the unique list changes nothing."""
        first = deduplicate_references(brands)

        second = deduplicate_references(first.unique_list)

        assert second.unique_list == first.unique_list
        assert second.duplicate_groups == []

    def test_empty(self):
        result = deduplicate_references([])

        assert result.unique_list == []
        assert result.id_to_canonical_name == {}


# ===================
# BRAND MATCHING TESTS
# ===================

class TestExtractBrandFromName:
    """Tests for extract_brand_from_name()"""

    @pytest.mark.parametrize("name,expected", [
        ("Hvid - Beanie Fonzie", "Hvid"),
        ("Mini Rodini - Sweater - Red", "Mini Rodini"),
        ("A - Thing", None),
        ("The - Thing", None),
        ("an - Thing", None),
        ("Beanie Fonzie", None),
        ("Hvid-Beanie", None),
        (None, None),
    ])
    def test_extract(self, name, expected):
        assert extract_brand_from_name(name) == expected


class TestFindMatchingReference:
    """Tests for find_matching_reference()"""

    @pytest.fixture
    def brands(self) -> list[ReferenceEntity]:
        return [
            ReferenceEntity(id=7, name="Mini Rodini"),
            ReferenceEntity(id=5, name="Hvid"),
        ]

    def test_exact_match(self, brands):
        entity, confidence = find_matching_reference("HVID", brands)

        assert entity.id == 5
        assert confidence == "exact"

    def test_exact_preferred_over_fuzzy(self):
        """An exact match later in the list beats an earlier fuzzy one."""
        entities = [
            ReferenceEntity(id=1, name="Hvid Kids"),
            ReferenceEntity(id=2, name="Hvid"),
        ]

        entity, confidence = find_matching_reference("Hvid", entities)

        assert entity.id == 2
        assert confidence == "exact"

    def test_fuzzy_match(self, brands):
        """Containment in either direction is a fuzzy match."""
        entity, confidence = find_matching_reference("Hvid Kids", brands)

        assert entity.id == 5
        assert confidence == "fuzzy"

    def test_no_match(self, brands):
        assert find_matching_reference("Konges Slojd", brands) is None

    def test_empty_name(self, brands):
        """An empty name matches nothing."""
        assert find_matching_reference("  ", brands) is None


# ===================
# SERVICE TESTS
# ===================

class TestBrandService:
    """Tests for BrandService"""

    def test_build_context_for_known_supplier(self, catalog_store):
        """Category, brand and scope all come from the supplier name."""
        service = BrandService(catalog_store, fallback_category_name="All")

        context = service.build_context("Hvid")

        assert context.default_category.id == 2
        assert context.default_brand.id == 5
        assert context.candidate_scope.category_name == "Hvid"

    def test_build_context_falls_back_to_setting_category(self, catalog_store):
        """Unknown supplier: the configured fallback category is used."""
        service = BrandService(catalog_store, fallback_category_name="All")

        context = service.build_context("Konges Slojd")

        assert context.default_category.id == 1
        assert context.default_brand is None

    def test_build_context_explicit_fallback(self, catalog_store):
        """An explicit fallback category wins over the configured one."""
        service = BrandService(catalog_store, fallback_category_name="All")
        fallback = ReferenceEntity(id=42, name="All / Saleable")

        context = service.build_context("Konges Slojd", fallback_category=fallback)

        assert context.default_category.id == 42

    def test_build_context_without_categories(self):
        """No categories at all leaves the default category unset."""
        service = BrandService(InMemoryCatalogStore(), fallback_category_name="All")

        context = service.build_context("Hvid")

        assert context.default_category is None
        assert context.default_brand is None

    def test_brand_overview(self, catalog_store):
        """Duplicates are collapsed and reported."""
        service = BrandService(catalog_store)

        overview = service.brand_overview()

        assert [brand.name for brand in overview.brands] == ["Hvid", "Mini Rodini"]
        assert overview.total_values == 3
        assert overview.duplicate_groups[0].canonical_name == "Hvid"
