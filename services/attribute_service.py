"""
Attribute resolution for variant creation.

Given the attribute lines of a matched base product and the size/color
hints parsed from the line name, pre-select a value per attribute:

    - existing value that matches the hint → that value
    - no existing value matches            → the hint verbatim (new value)
    - no hint / not a size or color attr   → "" (leave unset)

Brand attributes (name contains a brand marker such as "merk") are never
presented. The marker rule is injected as a predicate.
"""

from threading import Lock
from typing import Callable, Optional, Sequence
import structlog

from config import settings
from models.catalog import AttributeLine
from models.reconciliation import AttributeChoice
from services.catalog_store_service import CatalogStore
from utils.text_utils import contains_any, normalize_size_label

logger = structlog.get_logger(__name__)

AttributePredicate = Callable[[str], bool]


def make_brand_attribute_predicate(markers: Sequence[str]) -> AttributePredicate:
    """
    Build the "is this the brand attribute" predicate.

    Args:
        markers: Substrings marking a brand attribute (case-insensitive)

    Returns:
        Predicate over attribute names
    """
    markers = tuple(markers)
    return lambda attribute_name: contains_any(attribute_name, markers)


# ===================
# ATTRIBUTE CACHE
# ===================

class AttributeCache:
    """
    Attribute lines per base product for one reconciliation run.

    Thread-safe: loading a template's lines happens at most once even when
    several workers ask for it at the same time.
    """

    def __init__(self) -> None:
        self._lines: dict[int, tuple[AttributeLine, ...]] = {}
        self._locks: dict[int, Lock] = {}
        self._guard = Lock()
        self.hits = 0
        self.misses = 0

    def _lock_for(self, template_id: int) -> Lock:
        with self._guard:
            return self._locks.setdefault(template_id, Lock())

    def get_or_load(
        self,
        template_id: int,
        loader: Callable[[int], Sequence[AttributeLine]],
    ) -> tuple[AttributeLine, ...]:
        """
        Return cached lines, loading them on first use.

        A failing loader leaves nothing cached, so the next line retries.
        """
        with self._lock_for(template_id):
            if template_id in self._lines:
                with self._guard:
                    self.hits += 1
                return self._lines[template_id]

            lines = tuple(loader(template_id))
            with self._guard:
                self._lines[template_id] = lines
                self.misses += 1
            return lines

    def __contains__(self, template_id: int) -> bool:
        return template_id in self._lines

    def __len__(self) -> int:
        return len(self._lines)


def load_attribute_lines(
    store: CatalogStore,
    template_id: int,
    is_excluded: AttributePredicate,
    orphaned_value_ids: Optional[set[int]] = None,
) -> list[AttributeLine]:
    """
    Fetch a template's attribute lines with their allowed value names.

    Excluded (brand) lines are dropped before their values are fetched.
    Value ids the store cannot return are added to orphaned_value_ids.

    Raises:
        Whatever the store raises; the caller decides per line.
    """
    raw_lines = store.get_attribute_lines(template_id)
    lines: list[AttributeLine] = []

    for raw in raw_lines:
        if is_excluded(raw.attribute_name):
            logger.debug(
                "brand_attribute_skipped",
                template_id=template_id,
                attribute=raw.attribute_name
            )
            continue

        values = store.get_attribute_values(raw.value_ids) if raw.value_ids else []
        found_ids = {value.id for value in values}
        missing = [value_id for value_id in raw.value_ids if value_id not in found_ids]
        if missing:
            logger.warning(
                "orphaned_attribute_values",
                template_id=template_id,
                attribute=raw.attribute_name,
                value_ids=missing
            )
            if orphaned_value_ids is not None:
                orphaned_value_ids.update(missing)

        lines.append(AttributeLine(
            attribute_id=raw.attribute_id,
            attribute_name=raw.attribute_name,
            allowed_values=tuple(value.name for value in values),
        ))

    logger.debug(
        "attribute_lines_loaded",
        template_id=template_id,
        count=len(lines)
    )
    return lines


# ===================
# RESOLUTION
# ===================

def _loosely_equal(value: str, hint: str) -> bool:
    """Exact or substring match in either direction, ignoring case."""
    value_lower = value.lower()
    hint_lower = hint.lower()
    return value_lower == hint_lower or hint_lower in value_lower or value_lower in hint_lower


def match_size_value(allowed_values: Sequence[str], size: str) -> Optional[str]:
    """
    First allowed value matching a size hint.

    "9-15 months" matches "9-15m", "9 - 15 Months" and "9-15 months".
    """
    target = normalize_size_label(size)
    for value in allowed_values:
        if not value:
            continue
        if normalize_size_label(value) == target or _loosely_equal(value, size):
            return value
    return None


def match_color_value(allowed_values: Sequence[str], color: str) -> Optional[str]:
    """First allowed value matching a color hint."""
    for value in allowed_values:
        if value and _loosely_equal(value, color):
            return value
    return None


def resolve_attributes(
    lines: Sequence[AttributeLine],
    size: Optional[str],
    color: Optional[str],
    is_excluded: Optional[AttributePredicate] = None,
    size_keywords: Optional[Sequence[str]] = None,
    color_keywords: Optional[Sequence[str]] = None,
) -> list[AttributeChoice]:
    """
    Pre-select a value for every non-brand attribute line.

    Args:
        lines: Attribute lines of the matched base product
        size: Size hint from the name parser
        color: Color hint from the name parser
        is_excluded: Brand attribute predicate (default from settings)
        size_keywords: Attribute name fragments meaning "size" (default from settings)
        color_keywords: Attribute name fragments meaning "color" (default from settings)

    Returns:
        One AttributeChoice per presented attribute (never raises)
    """
    if is_excluded is None:
        is_excluded = make_brand_attribute_predicate(settings.brand_attribute_markers)
    if size_keywords is None:
        size_keywords = settings.size_attribute_keywords
    if color_keywords is None:
        color_keywords = settings.color_attribute_keywords

    choices: list[AttributeChoice] = []

    for line in lines:
        if is_excluded(line.attribute_name):
            continue

        selected = ""
        if size and contains_any(line.attribute_name, size_keywords):
            selected = match_size_value(line.allowed_values, size) or size
        elif color and contains_any(line.attribute_name, color_keywords):
            selected = match_color_value(line.allowed_values, color) or color

        if selected and selected not in line.allowed_values:
            logger.debug(
                "attribute_value_will_be_created",
                attribute=line.attribute_name,
                value=selected
            )

        choices.append(AttributeChoice(
            attribute_id=line.attribute_id,
            name=line.attribute_name,
            allowed_values=line.allowed_values,
            selected_value=selected,
        ))

    return choices

