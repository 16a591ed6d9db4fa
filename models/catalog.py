"""
Catalog schemas: the minimal view of templates, variants and attributes
that reconciliation needs from the catalog store.
"""

from pydantic import Field
from typing import Optional

from models.base import FrozenSchema


class CatalogProduct(FrozenSchema):
    """
    Existing catalog entry (template or variant).

    A variant always has template_id set; a template never does.
    """

    id: int = Field(..., description="Catalog record ID")
    name: str = Field(..., description="Display name")
    barcode: Optional[str] = Field(None, description="EAN/UPC barcode")
    template_id: Optional[int] = Field(
        None,
        description="Parent template ID (variants only)"
    )
    stock_on_hand: float = Field(0, description="Quantity available")
    category_name: Optional[str] = Field(
        None,
        description="Complete category name (e.g. 'All / Hvid')"
    )
    brand_name: Optional[str] = Field(None, description="Brand attribute value")

    @property
    def is_variant(self) -> bool:
        return self.template_id is not None


class CandidateScope(FrozenSchema):
    """
    Brand/category namespace used to select base product candidates.

    Empty scope means every template is a candidate.
    """

    category_name: Optional[str] = Field(
        None,
        description="Case-insensitive substring of the template category"
    )
    brand_name: Optional[str] = Field(
        None,
        description="Case-insensitive brand the template must carry"
    )


class TemplateAttributeLine(FrozenSchema):
    """Raw attribute line as stored on a template."""

    id: int
    template_id: int
    attribute_id: int
    attribute_name: str
    value_ids: tuple[int, ...] = ()


class AttributeValue(FrozenSchema):
    """Single attribute value (e.g. '9-12m' for size)."""

    id: int
    name: str


class AttributeLine(FrozenSchema):
    """Template attribute with the names of its currently allowed values."""

    attribute_id: int
    attribute_name: str
    allowed_values: tuple[str, ...] = ()


class ReferenceEntity(FrozenSchema):
    """
    Named reference record: a brand value or a product category.

    source tells which attribute or table the record came from.
    """

    id: int
    name: str
    source: Optional[str] = None
