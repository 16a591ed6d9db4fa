"""
Supplier document parsers.
"""

from parsers.product_name_parser import (
    parse_product_info,
    looks_like_size,
    ParsedProductName,
)

__all__ = [
    "parse_product_info",
    "looks_like_size",
    "ParsedProductName",
]
