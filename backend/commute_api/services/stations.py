"""
Station resolution over the station cache.

Stations are stored as JSON strings under "{contract}_{number}" and indexed
geographically in "{contract}_stations". "{contract}_images" is a
non-station entry that is never returned.
"""

from typing import List, Literal, Optional, Sequence

import structlog

from commute_api.core.exceptions import StationDecodeError
from commute_api.db.station_cache import StationCache
from commute_api.schemas.stations import Station
from commute_api.services.codec import decode_station, decode_station_strict

logger = structlog.get_logger()

DecodePolicy = Literal["lenient", "skip", "strict"]

DEFAULT_GEO_RADIUS_KM = 100.0


def station_key(contract_name: str, number: str) -> str:
    return f"{contract_name}_{number}"


def images_key(contract_name: str) -> str:
    return f"{contract_name}_images"


def geo_index_key(contract_name: str) -> str:
    return f"{contract_name}_stations"


class StationResolver:
    """Resolves stations by number, by distance or by contract."""

    def __init__(
        self,
        cache: StationCache,
        geo_radius_km: float = DEFAULT_GEO_RADIUS_KM,
        honor_requested_radius: bool = False,
        decode_policy: DecodePolicy = "lenient",
    ):
        self.cache = cache
        self.geo_radius_km = geo_radius_km
        self.honor_requested_radius = honor_requested_radius
        self.decode_policy = decode_policy

    async def resolve_stations(
        self,
        contract_name: str,
        numbers: Optional[Sequence[str]] = None,
        lat: float = 0.0,
        lng: float = 0.0,
        radius: float = 0.0,
    ) -> List[Station]:
        """Pick a search strategy: numbers first, then coordinates, then the whole contract."""
        numbers = list(numbers or [])

        if numbers:
            logger.info("Station search", strategy="numbers", contract_name=contract_name, numbers=numbers)
            return await self.resolve_by_numbers(contract_name, numbers)

        # A coordinate of exactly 0 counts as not supplied
        if lat != 0 and lng != 0:
            logger.info(
                "Station search",
                strategy="geo_radius",
                contract_name=contract_name,
                lat=lat,
                lng=lng,
                distance=radius,
            )
            return await self.resolve_by_geo_radius(contract_name, lat, lng, radius)

        logger.info("Station search", strategy="contract", contract_name=contract_name)
        return await self.resolve_by_contract(contract_name)

    async def resolve_by_numbers(self, contract_name: str, numbers: Sequence[str]) -> List[Station]:
        if not numbers:
            return []

        keys = [station_key(contract_name, number) for number in numbers]
        return await self._fetch(contract_name, keys)

    async def resolve_by_geo_radius(
        self,
        contract_name: str,
        lat: float,
        lng: float,
        radius_meters: float,
    ) -> List[Station]:
        radius_km = self.geo_radius_km
        if self.honor_requested_radius and radius_meters > 0:
            radius_km = radius_meters / 1000.0

        members = await self.cache.geo_radius(
            geo_index_key(contract_name),
            lng,
            lat,
            radius_km,
            sort_ascending=True,
        )

        keys = [station_key(contract_name, member.name) for member in members]
        return await self._fetch(contract_name, keys)

    async def resolve_by_contract(self, contract_name: str) -> List[Station]:
        keys = await self.cache.list_keys(f"{contract_name}_*")
        return await self._fetch(contract_name, keys)

    async def _fetch(self, contract_name: str, keys: Sequence[str]) -> List[Station]:
        reserved = images_key(contract_name)
        keys = [key for key in keys if key != reserved]
        logger.debug("Station keys", contract_name=contract_name, keys=keys)

        if not keys:
            return []

        values = await self.cache.bulk_get(keys)
        payloads = [value for value in values if value is not None]
        return self._decode_all(payloads)

    def _decode_all(self, payloads: Sequence[str]) -> List[Station]:
        if self.decode_policy == "lenient":
            return [decode_station(raw) for raw in payloads]

        stations = []
        for raw in payloads:
            try:
                stations.append(decode_station_strict(raw))
            except StationDecodeError as e:
                if self.decode_policy == "strict":
                    raise
                logger.warning("Skipping malformed station payload", error=e.detail)
        return stations
