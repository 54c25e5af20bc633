"""
Health check endpoints for monitoring and orchestration.
"""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends

from commute_api.config import get_settings
from commute_api.db.station_cache import StationCache
from commute_api.db.stores import get_station_cache, get_timeseries_store
from commute_api.db.timeseries import TimeSeriesStore

logger = structlog.get_logger()
settings = get_settings()
router = APIRouter()


@router.get("/health/live")
async def liveness_check():
    """Basic liveness check - is the process running?"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc),
        "service": settings.app_name,
        "version": settings.app_version,
    }


@router.get("/health/ready")
async def readiness_check(
    cache: StationCache = Depends(get_station_cache),
    timeseries: TimeSeriesStore = Depends(get_timeseries_store),
):
    """Readiness check - can we reach both stores?"""
    checks = {
        "station_cache": await cache.ping(),
        "timeseries": await timeseries.ping(),
    }
    if not all(checks.values()):
        logger.warning("Readiness check failed", **checks)

    return {
        "status": "healthy" if all(checks.values()) else "unhealthy",
        "timestamp": datetime.now(timezone.utc),
        "checks": checks,
    }
