"""
Station cache access: current station snapshots and per-contract geo indexes.
"""

from typing import List, Optional, Protocol, Sequence

import structlog
from redis import asyncio as aioredis
from redis.exceptions import RedisError, ResponseError

from commute_api.config import Settings
from commute_api.core.exceptions import CacheUnavailableError
from commute_api.schemas.stations import GeoMember

logger = structlog.get_logger()


class StationCache(Protocol):
    """Narrow read contract the resolution engine needs from the cache."""

    async def bulk_get(self, keys: Sequence[str]) -> List[Optional[str]]:
        """Positional values for keys, None where a key is missing."""
        ...

    async def list_keys(self, pattern: str) -> List[str]:
        ...

    async def geo_radius(
        self,
        index_key: str,
        lng: float,
        lat: float,
        radius_km: float,
        sort_ascending: bool = True,
    ) -> List[GeoMember]:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


class RedisStationCache:
    """StationCache backed by Redis strings and GEO sets."""

    def __init__(self, client: aioredis.Redis):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisStationCache":
        client = aioredis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
        )
        return cls(client)

    async def bulk_get(self, keys: Sequence[str]) -> List[Optional[str]]:
        if not keys:
            return []
        try:
            return list(await self._client.mget(list(keys)))
        except RedisError as e:
            logger.error("Redis MGET failed", keys=len(keys), error=str(e))
            raise CacheUnavailableError(str(e)) from e

    async def list_keys(self, pattern: str) -> List[str]:
        try:
            return list(await self._client.keys(pattern))
        except RedisError as e:
            logger.error("Redis KEYS failed", pattern=pattern, error=str(e))
            raise CacheUnavailableError(str(e)) from e

    async def geo_radius(
        self,
        index_key: str,
        lng: float,
        lat: float,
        radius_km: float,
        sort_ascending: bool = True,
    ) -> List[GeoMember]:
        try:
            members = await self._client.georadius(
                index_key,
                lng,
                lat,
                radius_km,
                unit="km",
                withdist=True,
                sort="ASC" if sort_ascending else "DESC",
            )
        except ResponseError as e:
            # Rejected arguments, e.g. a point outside the indexable range
            logger.warning("Redis GEORADIUS rejected", index=index_key, lng=lng, lat=lat, error=str(e))
            return []
        except RedisError as e:
            logger.error("Redis GEORADIUS failed", index=index_key, error=str(e))
            raise CacheUnavailableError(str(e)) from e

        return [GeoMember(name=str(name), distance=float(dist)) for name, dist in members]

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()
