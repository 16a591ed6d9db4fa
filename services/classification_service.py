"""
Classification engine for supplier document lines.

Each line becomes exactly one of:
    UpdateStock    barcode already in the catalog (variant, or a template's
                   first variant)
    CreateVariant  a base product in the supplier's scope matches the name
    CreateProduct  nothing matches

A catalog failure only costs the line it happened on: it is logged and
reported in per_line_errors while the rest of the batch is classified.

Barcodes found in the catalog are also checked for duplicate catalog
records; those are reported in catalog_duplicates.
"""

from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from threading import Event, Lock
from typing import Callable, Optional, Sequence, TypeVar, Union, assert_never
import structlog

from config import settings
from exceptions import CatalogLookupError
from models.catalog import AttributeLine, CatalogProduct
from models.reconciliation import (
    BarcodeCount,
    CatalogDuplicate,
    ClassificationContext,
    ClassificationResult,
    ClassificationSummary,
    ClassifiedLine,
    CreateProduct,
    CreateVariant,
    InputLine,
    LineError,
    UpdateStock,
)
from parsers.product_name_parser import parse_product_info
from services.attribute_service import (
    AttributeCache,
    AttributePredicate,
    load_attribute_lines,
    make_brand_attribute_predicate,
    resolve_attributes,
)
from services.catalog_store_service import CatalogStore, SupabaseCatalogStore
from services.matching_service import find_base_product

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Outcome of one line; None when the line was never started (cancelled)
LineOutcome = Optional[Union[UpdateStock, CreateVariant, CreateProduct, LineError]]


@dataclass
class _RunState:
    """Cross-line state of one classify() call."""
    context: ClassificationContext
    cache: AttributeCache
    cancel_event: Event
    candidates: Optional[list[CatalogProduct]] = None
    candidates_lock: Lock = field(default_factory=Lock)
    orphaned_value_ids: set[int] = field(default_factory=set)
    orphaned_lock: Lock = field(default_factory=Lock)
    catalog_duplicates: dict[str, Optional[CatalogDuplicate]] = field(default_factory=dict)
    catalog_duplicates_lock: Lock = field(default_factory=Lock)


class ClassificationService:
    """
    Classifies document lines against the catalog.

    The service itself is stateless between runs; everything a run
    accumulates lives in that run's state and AttributeCache.
    """

    def __init__(
        self,
        store: CatalogStore,
        is_brand_attribute: Optional[AttributePredicate] = None,
        size_keywords: Optional[Sequence[str]] = None,
        color_keywords: Optional[Sequence[str]] = None,
        min_word_length: Optional[int] = None,
        max_workers: Optional[int] = None,
    ):
        self.store = store
        self.is_brand_attribute = is_brand_attribute or make_brand_attribute_predicate(
            settings.brand_attribute_markers
        )
        self.size_keywords = tuple(size_keywords or settings.size_attribute_keywords)
        self.color_keywords = tuple(color_keywords or settings.color_attribute_keywords)
        self.min_word_length = min_word_length or settings.significant_word_min_length
        self.max_workers = max_workers or settings.classification_max_workers

    # ===================
    # ENTRY POINT
    # ===================

    def classify(
        self,
        lines: Sequence[InputLine],
        context: ClassificationContext,
        *,
        cache: Optional[AttributeCache] = None,
        cancel_event: Optional[Event] = None,
        max_workers: Optional[int] = None,
    ) -> ClassificationResult:
        """
        Classify a batch of document lines.

        Args:
            lines: Document lines in order
            context: Default category/brand and candidate scope
            cache: Attribute cache for this run (a fresh one if omitted)
            cancel_event: Set to stop before the next line
            max_workers: Lines classified concurrently (default from settings)

        Returns:
            ClassificationResult; classified lines keep input order
        """
        state = _RunState(
            context=context,
            cache=cache if cache is not None else AttributeCache(),
            cancel_event=cancel_event or Event(),
        )
        workers = max(1, max_workers or self.max_workers)

        skipped = [i for i, line in enumerate(lines) if not line.barcode.strip()]
        todo = [i for i, line in enumerate(lines) if line.barcode.strip()]

        logger.info(
            "classification_started",
            total_lines=len(lines),
            skipped=len(skipped),
            workers=workers,
            scope_category=context.candidate_scope.category_name,
            scope_brand=context.candidate_scope.brand_name
        )

        def run(index: int) -> LineOutcome:
            if state.cancel_event.is_set():
                return None
            return self._classify_or_record(state, index, lines[index])

        if workers == 1 or len(todo) <= 1:
            outcomes = []
            for index in todo:
                outcome = run(index)
                if outcome is None:
                    break
                outcomes.append(outcome)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(run, todo))

        result = self._build_result(lines, state, outcomes, skipped)

        log = logger.warning if result.cancelled else logger.info
        log(
            "classification_completed",
            cancelled=result.cancelled,
            **result.summary.model_dump()
        )
        return result

    # ===================
    # PER LINE
    # ===================

    def _classify_or_record(
        self,
        state: _RunState,
        index: int,
        line: InputLine,
    ) -> Union[UpdateStock, CreateVariant, CreateProduct, LineError]:
        """Classify one line, turning a catalog failure into a LineError."""
        try:
            classified = self._classify_line(state, index, line)
        except CatalogLookupError as e:
            logger.error(
                "catalog_lookup_failed",
                index=index,
                barcode=line.barcode,
                operation=e.details.get("operation"),
                error=e.message
            )
            return LineError(
                index=index,
                line_number=index + 1,
                barcode=line.barcode,
                code=e.code,
                message=e.message,
            )

        logger.debug(
            "line_classified",
            index=index,
            barcode=line.barcode,
            action=classified.action
        )
        return classified

    def _classify_line(
        self,
        state: _RunState,
        index: int,
        line: InputLine,
    ) -> Union[UpdateStock, CreateVariant, CreateProduct]:
        barcode = line.barcode.strip()
        provenance = {
            "index": index,
            "barcode": barcode,
            "source_name": line.name,
            "sku": line.sku,
            "cost_price": line.cost_price,
            "delta_qty": line.quantity,
        }

        # 1. Barcode on a variant
        variant = self._call("find_variant_by_barcode", self.store.find_variant_by_barcode, barcode)
        if variant is not None:
            self._check_catalog_duplicates(state, index, barcode)
            return UpdateStock(
                **provenance,
                variant_id=variant.id,
                template_id=variant.template_id if variant.template_id is not None else variant.id,
                catalog_name=variant.name,
                current_stock=variant.stock_on_hand,
            )

        # 2. Barcode on a template: its first variant
        template = self._call("find_template_by_barcode", self.store.find_template_by_barcode, barcode)
        if template is not None:
            self._check_catalog_duplicates(state, index, barcode)
            variants = self._call(
                "list_variants_of_template",
                self.store.list_variants_of_template,
                template.id
            )
            if variants:
                first = variants[0]
                return UpdateStock(
                    **provenance,
                    variant_id=first.id,
                    template_id=template.id,
                    catalog_name=template.name,
                    current_stock=first.stock_on_hand,
                )
            logger.warning(
                "template_without_variants",
                index=index,
                barcode=barcode,
                template_id=template.id
            )

        # 3. Name match within the supplier scope
        parsed = parse_product_info(line.name)
        match = find_base_product(
            parsed.base,
            self._candidates(state),
            min_word_length=self.min_word_length,
        )

        if match is None:
            return CreateProduct(
                **provenance,
                parsed_name=parsed.base,
                detected_size=parsed.size,
                detected_color=parsed.color,
                default_category=state.context.default_category,
                default_brand=state.context.default_brand,
            )

        base_product = match.product
        attribute_lines = state.cache.get_or_load(
            base_product.id,
            lambda template_id: self._load_attribute_lines(state, template_id),
        )
        choices = resolve_attributes(
            attribute_lines,
            parsed.size,
            parsed.color,
            is_excluded=self.is_brand_attribute,
            size_keywords=self.size_keywords,
            color_keywords=self.color_keywords,
        )
        low_confidence = not any(choice.is_resolved for choice in choices)
        if low_confidence:
            logger.info(
                "variant_attributes_unresolved",
                index=index,
                base_product_id=base_product.id,
                size=parsed.size,
                color=parsed.color
            )

        return CreateVariant(
            **provenance,
            base_product_id=base_product.id,
            base_product_name=base_product.name,
            match_strategy=match.strategy,
            detected_size=parsed.size,
            detected_color=parsed.color,
            attributes=tuple(choices),
            low_confidence=low_confidence,
        )

    # ===================
    # CATALOG ACCESS
    # ===================

    def _call(self, operation: str, fn: Callable[..., T], *args) -> T:
        """Run a catalog call, wrapping any failure in CatalogLookupError."""
        try:
            return fn(*args)
        except CatalogLookupError:
            raise
        except Exception as e:
            raise CatalogLookupError(operation, str(e)) from e

    def _candidates(self, state: _RunState) -> list[CatalogProduct]:
        """Candidate templates for the run, loaded on first use."""
        with state.candidates_lock:
            if state.candidates is None:
                state.candidates = self._call(
                    "search_candidate_templates",
                    self.store.search_candidate_templates,
                    state.context.candidate_scope
                )
                logger.info("candidates_loaded", count=len(state.candidates))
            return state.candidates

    def _check_catalog_duplicates(self, state: _RunState, index: int, barcode: str) -> None:
        """Record barcode when more than one catalog record carries it, once per run."""
        with state.catalog_duplicates_lock:
            if barcode in state.catalog_duplicates:
                return

        products = self._call(
            "find_products_by_barcode",
            self.store.find_products_by_barcode,
            barcode
        )
        duplicate = None
        if len(products) > 1:
            duplicate = CatalogDuplicate(
                barcode=barcode,
                template_ids=tuple(p.id for p in products if not p.is_variant),
                variant_ids=tuple(p.id for p in products if p.is_variant),
                match_count=len(products),
            )
            logger.warning(
                "catalog_duplicate_barcode",
                index=index,
                barcode=barcode,
                template_ids=duplicate.template_ids,
                variant_ids=duplicate.variant_ids
            )

        with state.catalog_duplicates_lock:
            state.catalog_duplicates.setdefault(barcode, duplicate)

    def _load_attribute_lines(self, state: _RunState, template_id: int) -> list[AttributeLine]:
        orphaned: set[int] = set()
        lines = self._call(
            "get_attribute_lines",
            load_attribute_lines,
            self.store,
            template_id,
            self.is_brand_attribute,
            orphaned
        )
        if orphaned:
            with state.orphaned_lock:
                state.orphaned_value_ids.update(orphaned)
        return lines

    # ===================
    # RESULT
    # ===================

    def _build_result(
        self,
        lines: Sequence[InputLine],
        state: _RunState,
        outcomes: list[LineOutcome],
        skipped: list[int],
    ) -> ClassificationResult:
        classified: list[ClassifiedLine] = []
        errors: list[LineError] = []
        summary = ClassificationSummary(
            total_lines=len(lines),
            skipped_lines=len(skipped),
        )
        cancelled = False

        for outcome in outcomes:
            if outcome is None:
                cancelled = True
            elif isinstance(outcome, LineError):
                errors.append(outcome)
                summary.failed += 1
            else:
                classified.append(outcome)
                _count(summary, outcome)

        started = sum(1 for outcome in outcomes if outcome is not None)
        if started < len(lines) - len(skipped):
            cancelled = True

        barcodes = Counter(line.barcode.strip() for line in lines if line.barcode.strip())
        duplicates = [
            BarcodeCount(barcode=barcode, count=count)
            for barcode, count in barcodes.items()
            if count > 1
        ]
        if duplicates:
            logger.warning("duplicate_barcodes_in_batch", count=len(duplicates))

        summary.unique_barcodes = len(barcodes)
        summary.attribute_cache_hits = state.cache.hits
        summary.attribute_cache_misses = state.cache.misses

        catalog_duplicates = sorted(
            (d for d in state.catalog_duplicates.values() if d is not None),
            key=lambda d: d.barcode
        )
        summary.catalog_duplicate_barcodes = len(catalog_duplicates)

        return ClassificationResult(
            classified=classified,
            per_line_errors=errors,
            skipped_indices=skipped,
            input_duplicates=duplicates,
            catalog_duplicates=catalog_duplicates,
            orphaned_value_ids=sorted(state.orphaned_value_ids),
            summary=summary,
            cancelled=cancelled,
        )


def _count(summary: ClassificationSummary, line: ClassifiedLine) -> None:
    """Add a classified line to the per-action counters."""
    if isinstance(line, UpdateStock):
        summary.update_stock += 1
    elif isinstance(line, CreateVariant):
        summary.create_variant += 1
        if line.low_confidence:
            summary.low_confidence += 1
    elif isinstance(line, CreateProduct):
        summary.create_product += 1
    else:
        assert_never(line)


# Singleton instance
_service: Optional[ClassificationService] = None


def get_classification_service() -> ClassificationService:
    """Get or create ClassificationService instance."""
    global _service
    if _service is None:
        _service = ClassificationService(
            SupabaseCatalogStore(settings.brand_attribute_markers)
        )
    return _service
