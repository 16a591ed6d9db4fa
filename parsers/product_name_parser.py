"""
Supplier product name parser.

Splits a free-text line name into base name, size and color using the
"Base Name (size, color)" convention most suppliers follow:

    "[B036B] Booties (9-15 months, Powder)" → Booties / 9-15 months / Powder
    "Beanie Fonzie ADULT (Artichoke)"       → Beanie Fonzie ADULT / - / Artichoke
    "Sweater (18 months)"                   → Sweater / 18 months / -

Best effort: size and color are hints that the user may override.
"""

from dataclasses import dataclass
from typing import Optional
import re

from utils.text_utils import strip_sku_prefix

# "<before>(<details>)", first group only
DETAILS_PATTERN = re.compile(r"^([^(]+)\(([^()]*)\)")

# "18 months", "18months", "2years", "One size"
SIZE_KEYWORD_PATTERN = re.compile(
    r"(?:\b|(?<=\d))(?:months?|years?)\b|\b(?:size|maat)\b",
    re.IGNORECASE
)
SIZE_TOKEN_PATTERN = re.compile(r"^(xxs|xs|s|m|l|xl|xxl|xxxl|\d?xl)$", re.IGNORECASE)
# 18m, 2-3y, 92, 104/110, 36eu
NUMERIC_SIZE_PATTERN = re.compile(
    r"^\d+(?:[-/]\d+)?(?:m|mo|y|yr|cm|eu)?$",
    re.IGNORECASE
)


@dataclass(frozen=True)
class ParsedProductName:
    """Base name plus detected size and color hints."""
    base: str
    size: Optional[str] = None
    color: Optional[str] = None


def looks_like_size(text: str) -> bool:
    """
    Check whether a single parenthetical part describes a size.

    True for "18 months", "2 years", "One size", "XL", "92", "2-3Y".
    """
    if SIZE_KEYWORD_PATTERN.search(text):
        return True
    return any(
        SIZE_TOKEN_PATTERN.match(token) or NUMERIC_SIZE_PATTERN.match(token)
        for token in text.split()
    )


def parse_product_info(name: Optional[str]) -> ParsedProductName:
    """
    Parse a supplier line name into base, size and color.

    Rules:
        - The SKU tag ("[...]") is removed first
        - Only the first parenthetical group is read
        - Two or more comma parts: first is size, second is color,
          anything after the second part is ignored; an empty part
          leaves its slot unset
        - One part: size if it looks like a size, color otherwise
        - Empty parentheses: no size, no color
        - No (or unbalanced) parentheses: the whole name is the base

    Args:
        name: Raw line name

    Returns:
        ParsedProductName (never raises)
    """
    clean_name = strip_sku_prefix(name)

    match = DETAILS_PATTERN.match(clean_name)
    if not match or not match.group(1).strip():
        return ParsedProductName(base=clean_name)

    base = match.group(1).strip()
    # Positional: an empty part keeps its slot, "(, Powder)" has no size
    parts = [part.strip() for part in match.group(2).split(",")]

    if len(parts) >= 2:
        return ParsedProductName(base=base, size=parts[0] or None, color=parts[1] or None)

    if not parts[0]:
        return ParsedProductName(base=base)

    if looks_like_size(parts[0]):
        return ParsedProductName(base=base, size=parts[0])
    return ParsedProductName(base=base, color=parts[0])
