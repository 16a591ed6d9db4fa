"""
Reconciliation schemas: supplier document lines in, classified lines out.

A classified line is exactly one of UpdateStock, CreateVariant or
CreateProduct, discriminated by the `action` field.
"""

from pydantic import AliasChoices, Field
from typing import Annotated, Literal, Optional, Union

from models.base import BaseSchema, FrozenSchema
from models.catalog import CandidateScope, ReferenceEntity


MatchStrategy = Literal["substring", "all_words"]


# ===================
# INPUT
# ===================

class InputLine(FrozenSchema):
    """
    One row extracted from a supplier document.

    Lines with an empty barcode are skipped by the classifier.
    """

    barcode: str = Field("", description="EAN/UPC barcode")
    name: str = Field(
        "",
        description="Free-text name, may hold a [SKU] tag and (size, color)",
        examples=["[B036B] Booties (9-15 months, Powder)"]
    )
    sku: str = Field("", description="Supplier SKU")
    quantity: float = Field(0, ge=0, description="Units received (stock delta)")
    cost_price: float = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("cost_price", "costPrice", "price"),
        description="Wholesale unit price from the document"
    )


class ClassificationContext(FrozenSchema):
    """Defaults and candidate scope for one reconciliation run."""

    default_category: Optional[ReferenceEntity] = None
    default_brand: Optional[ReferenceEntity] = None
    candidate_scope: CandidateScope = Field(default_factory=CandidateScope)


# ===================
# CLASSIFIED LINES
# ===================

class AttributeChoice(FrozenSchema):
    """
    Attribute of a matched base product with the auto-selected value.

    An empty selected_value means "leave this attribute unset"; a value
    not in allowed_values means "create this value".
    """

    attribute_id: int
    name: str
    allowed_values: tuple[str, ...] = ()
    selected_value: str = ""

    @property
    def is_resolved(self) -> bool:
        return bool(self.selected_value)

    @property
    def creates_new_value(self) -> bool:
        return self.is_resolved and self.selected_value not in self.allowed_values


class ClassifiedLineBase(FrozenSchema):
    """Provenance shared by every classified line."""

    index: int = Field(..., ge=0, description="Position in the input batch")
    barcode: str
    source_name: str = Field("", description="Line name as it appeared in the document")
    sku: str = ""
    cost_price: float = 0
    delta_qty: float = Field(0, description="Quantity to add to stock")


class UpdateStock(ClassifiedLineBase):
    """Barcode already exists: add the quantity to an existing variant."""

    action: Literal["update_stock"] = "update_stock"
    variant_id: int
    template_id: int
    catalog_name: str = ""
    current_stock: float = 0


class CreateVariant(ClassifiedLineBase):
    """A base product matched: attach a new size/color variant to it."""

    action: Literal["create_variant"] = "create_variant"
    base_product_id: int
    base_product_name: str
    match_strategy: MatchStrategy
    detected_size: Optional[str] = None
    detected_color: Optional[str] = None
    attributes: tuple[AttributeChoice, ...] = ()
    low_confidence: bool = Field(
        False,
        description="No attribute could be given a value"
    )


class CreateProduct(ClassifiedLineBase):
    """Nothing in the catalog matches: create a new template."""

    action: Literal["create_product"] = "create_product"
    parsed_name: str
    detected_size: Optional[str] = None
    detected_color: Optional[str] = None
    default_category: Optional[ReferenceEntity] = None
    default_brand: Optional[ReferenceEntity] = None


ClassifiedLine = Annotated[
    Union[UpdateStock, CreateVariant, CreateProduct],
    Field(discriminator="action")
]


# ===================
# RESULT
# ===================

class LineError(FrozenSchema):
    """A line whose catalog lookups failed; the batch went on without it."""

    index: int = Field(..., ge=0, description="Position in the input batch")
    line_number: int = Field(..., ge=1, description="1-based line number")
    barcode: str
    code: str
    message: str


class BarcodeCount(FrozenSchema):
    """Barcode that appears more than once in the input batch."""

    barcode: str
    count: int


class CatalogDuplicate(FrozenSchema):
    """Barcode carried by more than one catalog template or variant."""

    barcode: str
    template_ids: tuple[int, ...] = ()
    variant_ids: tuple[int, ...] = ()
    match_count: int = Field(..., ge=2, description="Templates plus variants carrying the barcode")


class ClassificationSummary(BaseSchema):
    """Counters for one reconciliation run."""

    total_lines: int = 0
    skipped_lines: int = 0
    unique_barcodes: int = 0
    update_stock: int = 0
    create_variant: int = 0
    create_product: int = 0
    failed: int = 0
    low_confidence: int = 0
    attribute_cache_hits: int = 0
    attribute_cache_misses: int = 0
    catalog_duplicate_barcodes: int = 0


class ClassificationResult(BaseSchema):
    """
    Outcome of classifying a batch.

    classified is in input order. Failed lines appear only in
    per_line_errors, skipped (barcode-less) lines only in skipped_indices.
    """

    classified: list[ClassifiedLine] = Field(default_factory=list)
    per_line_errors: list[LineError] = Field(default_factory=list)
    skipped_indices: list[int] = Field(default_factory=list)
    input_duplicates: list[BarcodeCount] = Field(default_factory=list)
    catalog_duplicates: list[CatalogDuplicate] = Field(default_factory=list)
    orphaned_value_ids: list[int] = Field(default_factory=list)
    summary: ClassificationSummary = Field(default_factory=ClassificationSummary)
    cancelled: bool = False

    @property
    def to_update_stock(self) -> list[UpdateStock]:
        return [line for line in self.classified if isinstance(line, UpdateStock)]

    @property
    def to_create_variant(self) -> list[CreateVariant]:
        return [line for line in self.classified if isinstance(line, CreateVariant)]

    @property
    def to_create_product(self) -> list[CreateProduct]:
        return [line for line in self.classified if isinstance(line, CreateProduct)]


# ===================
# API
# ===================

class ClassifyRequest(BaseSchema):
    """
    Classify a batch of document lines.

    Either pass an explicit context or a supplier name; with a supplier
    name the default category, brand and candidate scope are looked up.
    """

    lines: list[InputLine] = Field(..., description="Document lines in order")
    context: Optional[ClassificationContext] = None
    supplier_name: Optional[str] = Field(
        None,
        description="Supplier/brand used to build the context",
        examples=["Hvid"]
    )


class DuplicateReferenceGroup(FrozenSchema):
    """Reference entities that differ only by case or whitespace."""

    canonical_name: str
    entities: tuple[ReferenceEntity, ...]


class BrandOverviewResponse(BaseSchema):
    """Deduplicated brand values with their near-duplicate groups."""

    brands: list[ReferenceEntity]
    duplicate_groups: list[DuplicateReferenceGroup]
    total_values: int
