"""
Text utilities for supplier product names.

Used by every matcher: normalization, SKU-tag stripping and tokenizing.
All functions are total; empty or None input yields an empty result.
"""

import re
from typing import Iterable, Optional

# "[B036B_EAN 5712345678901] Booties (...)" -> leading bracket group
SKU_PREFIX_PATTERN = re.compile(r"^\s*\[[^\]]*\]\s*")

MONTHS_PATTERN = re.compile(r"\s*months?\s*", re.IGNORECASE)
YEARS_PATTERN = re.compile(r"\s*years?\s*", re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """
    Normalize text for comparison.

    - "  Soft Wool BEANIE " → "soft wool beanie"

    Args:
        text: Raw text (may be None)

    Returns:
        Lowercased, trimmed string ("" for empty input)
    """
    if not text:
        return ""
    return text.strip().lower()


def strip_sku_prefix(name: Optional[str]) -> str:
    """
    Remove a leading [SKU] tag from a product name.

    - "[SKU123] Booties (9-15 months, Powder)" → "Booties (9-15 months, Powder)"
    - "Booties [old]" → "Booties [old]" (only a leading tag is removed)

    Args:
        name: Raw line name from the supplier document

    Returns:
        Name without the SKU tag, trimmed
    """
    if not name:
        return ""
    return SKU_PREFIX_PATTERN.sub("", name, count=1).strip()


def tokenize(text: Optional[str]) -> list[str]:
    """Split normalized text on whitespace."""
    return normalize(text).split()


def significant_tokens(text: Optional[str], min_length: int = 4) -> list[str]:
    """
    Tokens long enough to carry meaning in a product name.

    Short words (articles, units, "ADULT" is kept, "of" is not) are noise
    for name matching.

    Args:
        text: Product name
        min_length: Shortest token kept

    Returns:
        Normalized tokens with len >= min_length, in input order
    """
    return [token for token in tokenize(text) if len(token) >= min_length]


def normalize_size_label(size: Optional[str]) -> str:
    """
    Normalize a size label so supplier and catalog spellings compare equal.

    - "9-15 months" → "9-15m"
    - "9 - 15 Months" → "9-15m"
    - "2 years" → "2y"

    Args:
        size: Size text from a document or an attribute value

    Returns:
        Compact lowercase label
    """
    if not size:
        return ""
    label = size.lower()
    label = MONTHS_PATTERN.sub("m", label)
    label = YEARS_PATTERN.sub("y", label)
    return WHITESPACE_PATTERN.sub("", label)


def contains_any(text: Optional[str], terms: Iterable[str]) -> bool:
    """Check whether normalized text contains any of the normalized terms."""
    haystack = normalize(text)
    return any(normalize(term) and normalize(term) in haystack for term in terms)
