"""
Store lifecycle and request dependencies.
Clients are opened once by the application lifespan and closed at shutdown.
"""

import structlog
from fastapi import Depends, Request

from commute_api.config import Settings, get_settings
from commute_api.db.station_cache import RedisStationCache, StationCache
from commute_api.db.timeseries import InfluxTimeSeriesStore, TimeSeriesStore
from commute_api.services.history import HistoryService
from commute_api.services.stations import StationResolver
from commute_api.utils.cache import InMemoryStationCache

logger = structlog.get_logger()


def create_station_cache(settings: Settings) -> StationCache:
    if settings.cache_backend == "memory":
        logger.info("Using in-memory station cache")
        return InMemoryStationCache()
    logger.info("Connecting to Redis", url=settings.redis_url)
    return RedisStationCache.from_settings(settings)


def create_timeseries_store(settings: Settings) -> TimeSeriesStore:
    logger.info("Connecting to InfluxDB", url=settings.influx_url, database=settings.db_database)
    return InfluxTimeSeriesStore.from_settings(settings)


async def init_stores(state, settings: Settings) -> None:
    """Attach store clients to application state."""
    state.station_cache = create_station_cache(settings)
    state.timeseries_store = create_timeseries_store(settings)


async def close_stores(state) -> None:
    for name in ("station_cache", "timeseries_store"):
        store = getattr(state, name, None)
        if store is None:
            continue
        try:
            await store.close()
        except Exception as e:
            logger.warning(f"Failed to close {name}: {e}")


def get_station_cache(request: Request) -> StationCache:
    return request.app.state.station_cache


def get_timeseries_store(request: Request) -> TimeSeriesStore:
    return request.app.state.timeseries_store


def get_station_resolver(
    cache: StationCache = Depends(get_station_cache),
    settings: Settings = Depends(get_settings),
) -> StationResolver:
    return StationResolver(
        cache,
        geo_radius_km=settings.geo_search_radius_km,
        honor_requested_radius=settings.geo_honor_requested_radius,
        decode_policy=settings.station_decode_policy,
    )


def get_history_service(
    store: TimeSeriesStore = Depends(get_timeseries_store),
    settings: Settings = Depends(get_settings),
) -> HistoryService:
    return HistoryService(store, database=settings.db_database)
