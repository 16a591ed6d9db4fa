"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.reconciliation import router as reconciliation_router

__all__ = [
    "reconciliation_router",
]
