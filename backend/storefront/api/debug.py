"""
Debug API Endpoints
Inspect and drive the statistics cache by hand. Disabled in production.
"""
import logging
import time

from fastapi import APIRouter, HTTPException, Depends

from storefront.core.config import settings
from storefront.core.stats_cache import stats_cache
from storefront.repositories.stats_repository import StatsRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def ensure_not_production():
    if settings.is_production:
        raise HTTPException(status_code=403, detail="Not allowed in production")


@router.get("/stats-get", dependencies=[Depends(ensure_not_production)])
async def stats_get():
    """Cached statistics without triggering a warm"""
    value = stats_cache.peek()
    if value is None:
        return {"cached": False}
    return {"cached": True, "value": value}


@router.get("/stats-info", dependencies=[Depends(ensure_not_production)])
async def stats_info():
    return {"cache": stats_cache.debug_info()}


@router.post("/stats-invalidate", dependencies=[Depends(ensure_not_production)])
async def stats_invalidate():
    before = stats_cache.debug_info()
    stats_cache.invalidate()
    return {"invalidated": True, "before": before, "after": stats_cache.debug_info()}


@router.post("/stats-warm", dependencies=[Depends(ensure_not_production)])
async def stats_warm():
    start = time.monotonic()
    try:
        stats_cache.warm(StatsRepository().compute_statistics)
    except Exception as e:
        logger.error(f"stats-warm error: {e}")
        raise HTTPException(status_code=500, detail=f"Error warming stats: {str(e)}")

    return {
        "warmed": True,
        "took_ms": round((time.monotonic() - start) * 1000),
        "cache": stats_cache.debug_info()
    }
