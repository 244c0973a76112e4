"""API v1 main router aggregation.

This module aggregates all v1 API routers for clean imports in main.py.
"""

from fastapi import APIRouter

from . import (
    analytics,
    cache,
    history,
    illustrations,
)

# Create main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(illustrations.router)
router.include_router(history.router)
router.include_router(cache.router)
router.include_router(analytics.router)

__all__ = ["router"]
