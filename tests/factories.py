"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from typing import Optional

from models.catalog import AttributeLine, CatalogProduct
from models.reconciliation import InputLine


class InputLineFactory:
    """
    Factory for creating test InputLine data.

    Usage:
        # Create with defaults
        line = InputLineFactory.create()

        # Create with overrides
        line = InputLineFactory.create(name="Booties (9-15 months, Powder)")

        # Create multiple
        lines = InputLineFactory.create_batch(5)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        barcode: Optional[str] = None,
        name: Optional[str] = None,
        sku: Optional[str] = None,
        quantity: float = 1,
        cost_price: float = 10.0
    ) -> InputLine:
        """
        Create a single document line.

        Args:
            barcode: EAN (unique 13-digit code if not provided)
            name: Line name (no catalog match if not provided)
            sku: Supplier SKU
            quantity: Units received
            cost_price: Wholesale unit price

        Returns:
            InputLine
        """
        counter = cls._next_counter()

        return InputLine(
            barcode=barcode if barcode is not None else f"8{counter:012d}",
            name=name if name is not None else f"Unknown Product {counter}",
            sku=sku or f"SKU{counter:04d}",
            quantity=quantity,
            cost_price=cost_price,
        )

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list[InputLine]:
        """Create multiple document lines."""
        return [cls.create(**overrides) for _ in range(count)]


class CatalogProductFactory:
    """
    Factory for creating test catalog templates and variants.

    Usage:
        template = CatalogProductFactory.create(name="Booties")
        variant = CatalogProductFactory.create_variant(template, barcode="123")
    """

    _counter = 1000

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[int] = None,
        name: Optional[str] = None,
        barcode: Optional[str] = None,
        category_name: str = "All / Hvid",
        brand_name: Optional[str] = "Hvid"
    ) -> CatalogProduct:
        """Create a template."""
        counter = cls._next_counter()

        return CatalogProduct(
            id=id or counter,
            name=name or f"Template {counter}",
            barcode=barcode,
            category_name=category_name,
            brand_name=brand_name,
        )

    @classmethod
    def create_variant(
        cls,
        template: CatalogProduct,
        id: Optional[int] = None,
        barcode: Optional[str] = None,
        stock_on_hand: float = 0
    ) -> CatalogProduct:
        """Create a variant of template."""
        counter = cls._next_counter()

        return CatalogProduct(
            id=id or counter,
            name=f"{template.name} ({counter})",
            barcode=barcode,
            template_id=template.id,
            stock_on_hand=stock_on_hand,
        )

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list[CatalogProduct]:
        """Create multiple templates."""
        return [cls.create(**overrides) for _ in range(count)]


class AttributeLineFactory:
    """Factory for resolved attribute lines."""

    _counter = 0

    @classmethod
    def create(
        cls,
        attribute_name: str = "Maat",
        allowed_values: tuple[str, ...] = (),
        attribute_id: Optional[int] = None
    ) -> AttributeLine:
        cls._counter += 1
        return AttributeLine(
            attribute_id=attribute_id or cls._counter,
            attribute_name=attribute_name,
            allowed_values=allowed_values,
        )
