"""Cache maintenance API endpoints."""

from fastapi import APIRouter, Depends

from core.persistence import TTLCache
from backend.dependencies import get_cache
from .schemas import CacheStatsResponse, ClearedResponse

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get("/stats", response_model=CacheStatsResponse)
def get_cache_stats(cache: TTLCache = Depends(get_cache)):
    return CacheStatsResponse(**cache.stats().model_dump())


@router.post("/sweep", response_model=ClearedResponse)
def sweep_cache(cache: TTLCache = Depends(get_cache)):
    """Remove expired entries."""
    return ClearedResponse(cleared=cache.sweep_expired())


@router.delete("", response_model=ClearedResponse)
def clear_cache(cache: TTLCache = Depends(get_cache)):
    return ClearedResponse(cleared=cache.clear_all())
