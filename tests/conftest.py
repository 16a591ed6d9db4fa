"""
Shared test fixtures.

Provides a mock Supabase client for the catalog store and a small
in-memory catalog for the classification engine.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import re
import pytest
from unittest.mock import patch
from typing import Generator, Optional

from models.catalog import (
    AttributeValue,
    CandidateScope,
    CatalogProduct,
    ReferenceEntity,
    TemplateAttributeLine,
)
from models.reconciliation import ClassificationContext
from services.catalog_store_service import InMemoryCatalogStore

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, data: list = None, count: int = None, error: Optional[Exception] = None):
        self._data = data or []
        self._count = count
        self._error = error
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if row.get(column) == value]
        return self

    def neq(self, column, value):
        self._data = [row for row in self._data if row.get(column) != value]
        return self

    def ilike(self, column, pattern):
        # SQL LIKE: % is any run of characters
        regex = re.compile(
            "^" + ".*".join(re.escape(part) for part in pattern.split("%")) + "$",
            re.IGNORECASE
        )
        self._data = [
            row for row in self._data
            if row.get(column) is not None and regex.match(str(row[column]))
        ]
        return self

    def in_(self, column, values):
        wanted = set(values)
        self._data = [row for row in self._data if row.get(column) in wanted]
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        self._data = self._data[start:end + 1]
        return self

    def limit(self, count):
        self._data = self._data[:count]
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        if self._is_single:
            # Return first item or empty for single()
            data = self._data[0] if self._data else None
            return MockSupabaseResponse(
                data=data,
                count=1 if data else 0
            )
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None, error: Optional[Exception] = None):
        self._data = data or []
        self._count = count
        self._error = error

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self._data.copy(), self._count, self._error)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count, "error": None}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise error."""
        self._tables[table_name] = {"data": [], "count": None, "error": error}

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None, "error": None})
        return MockSupabaseTable(config["data"], config["count"], config["error"])


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("product_templates", [
                {"id": 1, "name": "Booties", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("product_variants", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_store_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


# ===================
# SAMPLE CATALOG
# ===================

HVID_CATEGORY = "All / Hvid"


@pytest.fixture
def sample_templates() -> list[CatalogProduct]:
    """Templates in catalog order (order matters for first-match)."""
    return [
        CatalogProduct(id=10, name="Booties", category_name=HVID_CATEGORY, brand_name="Hvid"),
        CatalogProduct(id=11, name="Beanie Fonzie ADULT", category_name=HVID_CATEGORY, brand_name="Hvid"),
        CatalogProduct(id=12, name="Wool Beanie Classic", category_name=HVID_CATEGORY, brand_name="Hvid"),
        CatalogProduct(id=13, name="Soft Cotton Hat", category_name=HVID_CATEGORY, brand_name="Hvid"),
        CatalogProduct(
            id=20,
            name="Mittens Pom",
            barcode="5710000000020",
            category_name=HVID_CATEGORY,
            brand_name="Hvid"
        ),
        CatalogProduct(
            id=21,
            name="Scarf Lonely",
            barcode="5710000000021",
            category_name=HVID_CATEGORY,
            brand_name="Hvid"
        ),
        CatalogProduct(id=30, name="Booties", category_name="All / Mini Rodini", brand_name="Mini Rodini"),
    ]


@pytest.fixture
def sample_variants() -> list[CatalogProduct]:
    return [
        CatalogProduct(
            id=100,
            name="Booties (6-9m, Powder)",
            barcode="5710000000100",
            template_id=10,
            stock_on_hand=3
        ),
        CatalogProduct(
            id=201,
            name="Mittens Pom (One size, Sand)",
            barcode="5710000000201",
            template_id=20,
            stock_on_hand=7
        ),
        CatalogProduct(
            id=202,
            name="Mittens Pom (One size, Clay)",
            barcode="5710000000202",
            template_id=20,
            stock_on_hand=1
        ),
    ]


@pytest.fixture
def sample_attribute_lines() -> list[TemplateAttributeLine]:
    return [
        TemplateAttributeLine(id=1, template_id=10, attribute_id=1, attribute_name="Maat", value_ids=(1, 2)),
        TemplateAttributeLine(id=2, template_id=10, attribute_id=2, attribute_name="Kleur", value_ids=(3, 4)),
        TemplateAttributeLine(id=3, template_id=10, attribute_id=3, attribute_name="Merk", value_ids=(5,)),
        TemplateAttributeLine(id=4, template_id=11, attribute_id=2, attribute_name="Kleur", value_ids=(4,)),
        TemplateAttributeLine(id=5, template_id=11, attribute_id=3, attribute_name="Merk", value_ids=(5,)),
    ]


@pytest.fixture
def sample_attribute_values() -> list[AttributeValue]:
    return [
        AttributeValue(id=1, name="6-9m"),
        AttributeValue(id=2, name="9-15m"),
        AttributeValue(id=3, name="Powder"),
        AttributeValue(id=4, name="Artichoke"),
        AttributeValue(id=5, name="Hvid"),
    ]


@pytest.fixture
def sample_categories() -> list[ReferenceEntity]:
    return [
        ReferenceEntity(id=1, name="All", source="product_categories"),
        ReferenceEntity(id=2, name=HVID_CATEGORY, source="product_categories"),
        ReferenceEntity(id=3, name="All / Mini Rodini", source="product_categories"),
    ]


@pytest.fixture
def sample_brand_values() -> list[ReferenceEntity]:
    return [
        ReferenceEntity(id=5, name="Hvid", source="Merk"),
        ReferenceEntity(id=6, name="HVID", source="Merk 1"),
        ReferenceEntity(id=7, name="Mini Rodini", source="Merk"),
    ]


@pytest.fixture
def catalog_store(
    sample_templates,
    sample_variants,
    sample_attribute_lines,
    sample_attribute_values,
    sample_categories,
    sample_brand_values,
) -> InMemoryCatalogStore:
    """
    In-memory catalog with one supplier (Hvid) and a second brand.

    Usage:
        def test_something(catalog_store):
            service = ClassificationService(catalog_store)
    """
    return InMemoryCatalogStore(
        templates=sample_templates,
        variants=sample_variants,
        attribute_lines=sample_attribute_lines,
        attribute_values=sample_attribute_values,
        categories=sample_categories,
        brand_values=sample_brand_values,
    )


@pytest.fixture
def hvid_context() -> ClassificationContext:
    """Context scoped to the Hvid supplier category."""
    return ClassificationContext(
        default_category=ReferenceEntity(id=2, name=HVID_CATEGORY),
        default_brand=ReferenceEntity(id=5, name="Hvid", source="Merk"),
        candidate_scope=CandidateScope(category_name="Hvid"),
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
