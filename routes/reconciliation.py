"""
Reconciliation API routes.

Classify supplier document lines against the catalog and inspect the
brand values used to build the classification context.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from exceptions import AppError, EmptyBatchError, MissingContextError
from models.reconciliation import (
    BrandOverviewResponse,
    ClassificationResult,
    ClassifyRequest,
)
from services.brand_service import get_brand_service
from services.classification_service import get_classification_service

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/classify", response_model=ClassificationResult)
def classify_lines(request: ClassifyRequest):
    """
    Classify document lines into stock updates, new variants and new products.

    Without an explicit context, the context is built from supplier_name.
    Lines whose catalog lookups fail are reported in per_line_errors.

    Raises:
        422: No lines, or neither context nor supplier_name
    """
    try:
        if not request.lines:
            raise EmptyBatchError()

        context = request.context
        if context is None:
            if not request.supplier_name:
                raise MissingContextError()
            context = get_brand_service().build_context(request.supplier_name)

        logger.info(
            "classify_requested",
            lines=len(request.lines),
            supplier=request.supplier_name
        )

        service = get_classification_service()
        return service.classify(request.lines, context)

    except Exception as e:
        return handle_error(e)


@router.get("/brands", response_model=BrandOverviewResponse)
def list_brands():
    """
    Get brand values with case/whitespace duplicates collapsed.

    Returns:
        Unique brands, duplicate groups and the raw value count
    """
    try:
        service = get_brand_service()
        return service.brand_overview()

    except Exception as e:
        return handle_error(e)
