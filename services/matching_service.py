"""
Base product matching.

Finds the existing template a new size/color variant should be attached to.
Two stages, first match wins, candidates are never ranked:

    1. substring: one normalized name contains the other
    2. all_words: every significant word of the base name appears in the
       candidate name ("Soft Wool Beanie" needs soft, wool AND beanie)

Callers rely on the first-match ordering, so candidate order matters.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import structlog

from models.catalog import CatalogProduct
from models.reconciliation import MatchStrategy
from utils.text_utils import normalize, significant_tokens

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BaseProductMatch:
    """Matched template and how it was found."""
    product: CatalogProduct
    strategy: MatchStrategy
    tokens: tuple[str, ...] = ()


def find_base_product(
    base_name: str,
    candidates: Sequence[CatalogProduct],
    min_word_length: int = 4,
) -> Optional[BaseProductMatch]:
    """
    Find the first candidate matching a parsed base name.

    Args:
        base_name: Base name from the product name parser
        candidates: Templates already scoped to one brand/category
        min_word_length: Shortest word used in all-words matching

    Returns:
        BaseProductMatch, or None when nothing matches
    """
    base = normalize(base_name)
    if not base:
        return None

    named = [(candidate, normalize(candidate.name)) for candidate in candidates]
    # An empty name is a substring of everything
    named = [(candidate, name) for candidate, name in named if name]

    for candidate, name in named:
        if base in name or name in base:
            logger.debug(
                "base_product_matched",
                base_name=base_name,
                product=candidate.name,
                strategy="substring"
            )
            return BaseProductMatch(product=candidate, strategy="substring")

    tokens = tuple(significant_tokens(base_name, min_length=min_word_length))
    if not tokens:
        logger.debug("base_product_no_significant_words", base_name=base_name)
        return None

    for candidate, name in named:
        if all(token in name for token in tokens):
            logger.debug(
                "base_product_matched",
                base_name=base_name,
                product=candidate.name,
                strategy="all_words",
                tokens=list(tokens)
            )
            return BaseProductMatch(product=candidate, strategy="all_words", tokens=tokens)

    logger.debug("base_product_not_found", base_name=base_name, tokens=list(tokens))
    return None
