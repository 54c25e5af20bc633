"""Shared fixtures: seeded in-memory station cache and a fake history store."""

from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from commute_api.core.exceptions import TimeSeriesUnavailableError
from commute_api.db.stores import get_station_cache, get_timeseries_store
from commute_api.db.timeseries import SeriesResult, StatementResult
from commute_api.main import app
from commute_api.schemas.stations import Image, Position, Station
from commute_api.utils.cache import InMemoryStationCache


def make_station(number: int, lat: float, lng: float, contract_name: str = "Paris", **kwargs) -> Station:
    fields = dict(
        number=number,
        name=f"{number:05d} - STATION {number}",
        address=f"{number} rue de Test",
        position=Position(lat=lat, lng=lng),
        banking=True,
        bonus=False,
        status="OPEN",
        contract_name=contract_name,
        bike_stands=20,
        available_bike_stands=12,
        available_bikes=8,
        last_update="1577836800000",
        images=[Image(uid=number, width=640, quality=1)],
    )
    fields.update(kwargs)
    return Station(**fields)


# Distances from Hotel de Ville (48.8566, 2.3522)
PARIS_STATIONS = [
    make_station(1, 48.8566, 2.3522),  # 0 km
    make_station(2, 48.8606, 2.3376),  # ~1.1 km
    make_station(3, 48.8738, 2.2950),  # ~4.6 km
    make_station(4, 48.8049, 2.1204),  # ~17.8 km, Versailles
    make_station(5, 49.4432, 1.0999),  # ~111 km, Rouen
]
LYON_STATIONS = [make_station(1, 45.7640, 4.8357, contract_name="Lyon")]


class RecordingStationCache(InMemoryStationCache):
    """In-memory cache that logs which read commands ran."""

    def __init__(self):
        super().__init__()
        self.calls: List[str] = []

    async def bulk_get(self, keys):
        self.calls.append("bulk_get")
        return await super().bulk_get(keys)

    async def list_keys(self, pattern: str = "*"):
        self.calls.append("list_keys")
        return await super().list_keys(pattern)

    async def geo_radius(self, *args, **kwargs):
        self.calls.append("geo_radius")
        return await super().geo_radius(*args, **kwargs)


class FakeTimeSeriesStore:
    """Records queries and replays a canned result."""

    def __init__(self, results: Optional[List[StatementResult]] = None, error: Optional[str] = None):
        self.results = results if results is not None else []
        self.error = error
        self.queries: List[tuple] = []

    @classmethod
    def with_rows(cls, rows: List[list]) -> "FakeTimeSeriesStore":
        series = SeriesResult(
            name="Paris_1",
            columns=["time", "available_bike_stands", "available_bikes"],
            values=rows,
        )
        return cls([StatementResult(statement_id=0, series=[series])])

    async def query(self, database: str, command: str) -> List[StatementResult]:
        self.queries.append((database, command))
        if self.error:
            raise TimeSeriesUnavailableError(self.error)
        return self.results

    async def ping(self) -> bool:
        return self.error is None

    async def close(self) -> None:
        pass


def minute_rows(count: int, start_hour: int = 0) -> List[list]:
    """One row per minute from 2020-01-01T{start_hour}:00Z."""
    rows = []
    for i in range(count):
        hour, minute = divmod(start_hour * 60 + i, 60)
        rows.append([f"2020-01-01T{hour:02d}:{minute:02d}:00Z", 20 - i % 20, i % 20])
    return rows


@pytest_asyncio.fixture
async def station_cache() -> RecordingStationCache:
    cache = RecordingStationCache()
    await cache.load_stations(PARIS_STATIONS + LYON_STATIONS)
    # Reserved non-station entries
    await cache.set("Paris_images", '[{"uid": 1, "width": 640, "quality": 1}]')
    await cache.geoadd("Paris_stations", 2.3522, 48.8566, "images")
    return cache


@pytest.fixture
def timeseries_store() -> FakeTimeSeriesStore:
    return FakeTimeSeriesStore.with_rows(minute_rows(180))


@pytest_asyncio.fixture
async def client(station_cache, timeseries_store):
    app.dependency_overrides[get_station_cache] = lambda: station_cache
    app.dependency_overrides[get_timeseries_store] = lambda: timeseries_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
