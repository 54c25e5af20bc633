"""
Simple in-memory station cache to replace Redis for local development and tests.
"""

import asyncio
import fnmatch
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from commute_api.schemas.stations import GeoMember, Station
from commute_api.services.codec import encode_station

# Earth radius used by Redis GEO commands, in meters
EARTH_RADIUS_M = 6372797.560856


def haversine_km(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Great-circle distance in km, matching Redis GEODIST."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    u = math.sin((lat2_r - lat1_r) / 2)
    v = math.sin(math.radians(lng2 - lng1) / 2)
    a = u * u + math.cos(lat1_r) * math.cos(lat2_r) * v * v
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(a)) / 1000.0


class InMemoryStationCache:
    """Redis-compatible station cache kept in process memory."""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._geo: Dict[str, Dict[str, Tuple[float, float]]] = {}
        self._lock = asyncio.Lock()

    async def set(self, key: str, value: str | bytes) -> bool:
        """Set a string value."""
        if isinstance(value, bytes):
            value = value.decode()
        async with self._lock:
            self._values[key] = value
            return True

    async def geoadd(self, index_key: str, lng: float, lat: float, member: str) -> int:
        """Add or move a member of a geo index."""
        async with self._lock:
            members = self._geo.setdefault(index_key, {})
            added = 0 if member in members else 1
            members[member] = (lng, lat)
            return added

    async def load_stations(self, stations: Iterable[Station]) -> int:
        """Seed station snapshots and their contract geo indexes."""
        count = 0
        for station in stations:
            await self.set(f"{station.contract_name}_{station.number}", encode_station(station))
            await self.geoadd(
                f"{station.contract_name}_stations",
                station.position.lng,
                station.position.lat,
                str(station.number),
            )
            count += 1
        return count

    async def bulk_get(self, keys: Sequence[str]) -> List[Optional[str]]:
        async with self._lock:
            return [self._values.get(key) for key in keys]

    async def list_keys(self, pattern: str = "*") -> List[str]:
        async with self._lock:
            all_keys = list(self._values.keys()) + list(self._geo.keys())
            return [key for key in all_keys if fnmatch.fnmatchcase(key, pattern)]

    async def geo_radius(
        self,
        index_key: str,
        lng: float,
        lat: float,
        radius_km: float,
        sort_ascending: bool = True,
    ) -> List[GeoMember]:
        async with self._lock:
            members = [
                GeoMember(name=name, distance=round(haversine_km(lng, lat, m_lng, m_lat), 4))
                for name, (m_lng, m_lat) in self._geo.get(index_key, {}).items()
            ]
        members = [m for m in members if m.distance <= radius_km]
        members.sort(key=lambda m: m.distance, reverse=not sort_ascending)
        return members

    async def flushall(self) -> bool:
        """Clear all cache entries."""
        async with self._lock:
            self._values.clear()
            self._geo.clear()
            return True

    async def ping(self) -> bool:
        """Ping (always returns True for in-memory cache)."""
        return True

    async def close(self) -> None:
        """Close connection (no-op for in-memory cache)."""
        pass
