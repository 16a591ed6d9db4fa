"""
Catalog store: the lookups reconciliation needs from the product catalog.

CatalogStore is the capability the classification engine consumes.
Two implementations:
    InMemoryCatalogStore: fixtures, dry runs and tests
    SupabaseCatalogStore: catalog mirror tables in Supabase

Every call may fail; the classification engine handles failures per line.
"""

from typing import Iterable, Optional, Protocol, Sequence
import structlog

from config import get_supabase_client
from models.catalog import (
    AttributeValue,
    CandidateScope,
    CatalogProduct,
    ReferenceEntity,
    TemplateAttributeLine,
)
from exceptions import DatabaseError
from utils.text_utils import contains_any, normalize

logger = structlog.get_logger(__name__)


class CatalogStore(Protocol):
    def find_variant_by_barcode(self, barcode: str) -> Optional[CatalogProduct]:
        ...

    def find_template_by_barcode(self, barcode: str) -> Optional[CatalogProduct]:
        ...

    def find_products_by_barcode(self, barcode: str) -> list[CatalogProduct]:
        ...

    def list_variants_of_template(self, template_id: int) -> list[CatalogProduct]:
        ...

    def search_candidate_templates(self, scope: CandidateScope) -> list[CatalogProduct]:
        ...

    def get_attribute_lines(self, template_id: int) -> list[TemplateAttributeLine]:
        ...

    def get_attribute_values(self, value_ids: Sequence[int]) -> list[AttributeValue]:
        ...

    def search_categories(self, name: str) -> list[ReferenceEntity]:
        ...

    def list_brand_values(self) -> list[ReferenceEntity]:
        ...


def _in_scope(template: CatalogProduct, scope: CandidateScope) -> bool:
    """Case-insensitive category substring and brand equality filter."""
    if scope.category_name and normalize(scope.category_name) not in normalize(template.category_name):
        return False
    if scope.brand_name and normalize(scope.brand_name) != normalize(template.brand_name):
        return False
    return True


# ===================
# IN-MEMORY STORE
# ===================

class InMemoryCatalogStore:
    """
    Catalog held in memory.

    Iteration order of templates is insertion order, which is the order
    base product matching sees candidates in.
    """

    def __init__(
        self,
        templates: Iterable[CatalogProduct] = (),
        variants: Iterable[CatalogProduct] = (),
        attribute_lines: Iterable[TemplateAttributeLine] = (),
        attribute_values: Iterable[AttributeValue] = (),
        categories: Iterable[ReferenceEntity] = (),
        brand_values: Iterable[ReferenceEntity] = (),
    ) -> None:
        self._templates = list(templates)
        self._variants = list(variants)
        self._attribute_lines = list(attribute_lines)
        self._attribute_values = {value.id: value for value in attribute_values}
        self._categories = list(categories)
        self._brand_values = list(brand_values)

    def find_variant_by_barcode(self, barcode: str) -> Optional[CatalogProduct]:
        return next((v for v in self._variants if v.barcode == barcode), None)

    def find_template_by_barcode(self, barcode: str) -> Optional[CatalogProduct]:
        return next((t for t in self._templates if t.barcode == barcode), None)

    def find_products_by_barcode(self, barcode: str) -> list[CatalogProduct]:
        return (
            [t for t in self._templates if t.barcode == barcode]
            + [v for v in self._variants if v.barcode == barcode]
        )

    def list_variants_of_template(self, template_id: int) -> list[CatalogProduct]:
        return [v for v in self._variants if v.template_id == template_id]

    def search_candidate_templates(self, scope: CandidateScope) -> list[CatalogProduct]:
        return [t for t in self._templates if _in_scope(t, scope)]

    def get_attribute_lines(self, template_id: int) -> list[TemplateAttributeLine]:
        return [line for line in self._attribute_lines if line.template_id == template_id]

    def get_attribute_values(self, value_ids: Sequence[int]) -> list[AttributeValue]:
        return [self._attribute_values[i] for i in value_ids if i in self._attribute_values]

    def search_categories(self, name: str) -> list[ReferenceEntity]:
        needle = normalize(name)
        return [c for c in self._categories if needle and needle in normalize(c.name)]

    def list_brand_values(self) -> list[ReferenceEntity]:
        return list(self._brand_values)


# ===================
# SUPABASE STORE
# ===================

class SupabaseCatalogStore:
    """
    Catalog store over the Supabase catalog mirror.

    Tables:
        product_templates (id, name, barcode, category_name, brand_name, qty_available)
        product_variants (id, name, barcode, template_id, qty_available)
        template_attribute_lines (id, template_id, attribute_id, attribute_name, value_ids)
        attribute_values (id, name, attribute_id, attribute_name)
        product_categories (id, name, complete_name)
    """

    def __init__(self, brand_attribute_markers: Sequence[str] = ("merk",)):
        self.db = get_supabase_client()
        self.brand_attribute_markers = tuple(brand_attribute_markers)

    def _select(self, operation: str, table: str, build) -> list[dict]:
        """Run a select query, wrapping client failures in DatabaseError."""
        try:
            query = build(self.db.table(table).select("*"))
            result = query.execute()
            return result.data or []
        except Exception as e:
            logger.error(
                "catalog_query_failed",
                operation=operation,
                table=table,
                error=str(e)
            )
            raise DatabaseError(operation, str(e), details={"table": table})

    @staticmethod
    def _template(row: dict) -> CatalogProduct:
        return CatalogProduct(
            id=row["id"],
            name=row.get("name") or "",
            barcode=row.get("barcode"),
            stock_on_hand=row.get("qty_available") or 0,
            category_name=row.get("category_name"),
            brand_name=row.get("brand_name"),
        )

    @staticmethod
    def _variant(row: dict) -> CatalogProduct:
        return CatalogProduct(
            id=row["id"],
            name=row.get("name") or "",
            barcode=row.get("barcode"),
            template_id=row["template_id"],
            stock_on_hand=row.get("qty_available") or 0,
        )

    def find_variant_by_barcode(self, barcode: str) -> Optional[CatalogProduct]:
        rows = self._select(
            "find_variant_by_barcode",
            "product_variants",
            lambda q: q.eq("barcode", barcode).limit(1),
        )
        return self._variant(rows[0]) if rows else None

    def find_template_by_barcode(self, barcode: str) -> Optional[CatalogProduct]:
        rows = self._select(
            "find_template_by_barcode",
            "product_templates",
            lambda q: q.eq("barcode", barcode).limit(1),
        )
        return self._template(rows[0]) if rows else None

    def find_products_by_barcode(self, barcode: str) -> list[CatalogProduct]:
        """
        Every template and variant carrying barcode, templates first.

        More than one record means the catalog itself holds a duplicate.
        """
        templates = self._select(
            "find_products_by_barcode",
            "product_templates",
            lambda q: q.eq("barcode", barcode).order("id"),
        )
        variants = self._select(
            "find_products_by_barcode",
            "product_variants",
            lambda q: q.eq("barcode", barcode).order("id"),
        )
        return [self._template(row) for row in templates] + [self._variant(row) for row in variants]

    def list_variants_of_template(self, template_id: int) -> list[CatalogProduct]:
        rows = self._select(
            "list_variants_of_template",
            "product_variants",
            lambda q: q.eq("template_id", template_id).order("id"),
        )
        return [self._variant(row) for row in rows]

    def search_candidate_templates(self, scope: CandidateScope) -> list[CatalogProduct]:
        def build(query):
            if scope.category_name:
                query = query.ilike("category_name", f"%{scope.category_name}%")
            if scope.brand_name:
                query = query.ilike("brand_name", scope.brand_name)
            return query.order("id")

        rows = self._select("search_candidate_templates", "product_templates", build)
        logger.debug(
            "candidate_templates_loaded",
            category=scope.category_name,
            brand=scope.brand_name,
            count=len(rows)
        )
        return [self._template(row) for row in rows]

    def get_attribute_lines(self, template_id: int) -> list[TemplateAttributeLine]:
        rows = self._select(
            "get_attribute_lines",
            "template_attribute_lines",
            lambda q: q.eq("template_id", template_id).order("id"),
        )
        return [
            TemplateAttributeLine(
                id=row["id"],
                template_id=row["template_id"],
                attribute_id=row["attribute_id"],
                attribute_name=(row.get("attribute_name") or "").strip(),
                value_ids=tuple(row.get("value_ids") or ()),
            )
            for row in rows
        ]

    def get_attribute_values(self, value_ids: Sequence[int]) -> list[AttributeValue]:
        if not value_ids:
            return []
        rows = self._select(
            "get_attribute_values",
            "attribute_values",
            lambda q: q.in_("id", list(value_ids)),
        )
        # Keep the order the template line lists its values in
        by_id = {row["id"]: AttributeValue(id=row["id"], name=row.get("name") or "") for row in rows}
        return [by_id[i] for i in value_ids if i in by_id]

    def search_categories(self, name: str) -> list[ReferenceEntity]:
        rows = self._select(
            "search_categories",
            "product_categories",
            lambda q: q.ilike("complete_name", f"%{name}%").order("id"),
        )
        return [
            ReferenceEntity(
                id=row["id"],
                name=row.get("complete_name") or row.get("name") or "",
                source="product_categories",
            )
            for row in rows
        ]

    def list_brand_values(self) -> list[ReferenceEntity]:
        rows = self._select(
            "list_brand_values",
            "attribute_values",
            lambda q: q.order("id"),
        )
        return [
            ReferenceEntity(
                id=row["id"],
                name=row.get("name") or "",
                source=row.get("attribute_name"),
            )
            for row in rows
            if contains_any(row.get("attribute_name"), self.brand_attribute_markers)
        ]
