"""Test station resolution strategies against the in-memory cache."""

import pytest

from commute_api.core.exceptions import StationDecodeError
from commute_api.schemas.stations import Station
from commute_api.services.codec import encode_station
from commute_api.services.stations import StationResolver, geo_index_key, images_key, station_key
from commute_api.utils.cache import InMemoryStationCache

from conftest import make_station

HOTEL_DE_VILLE = (48.8566, 2.3522)


class TestKeys:
    """Test cache key derivation."""

    def test_station_key(self):
        """Test station key format."""
        assert station_key("Paris", "42") == "Paris_42"

    def test_reserved_keys(self):
        """Test reserved key names."""
        assert images_key("Paris") == "Paris_images"
        assert geo_index_key("Paris") == "Paris_stations"


@pytest.mark.asyncio
class TestResolveByNumbers:
    """Test lookups by station number."""

    async def test_only_present_stations_are_returned(self):
        """Test only present stations are returned."""
        cache = InMemoryStationCache()
        await cache.set("Paris_1", encode_station(make_station(1, 48.85, 2.35)))
        resolver = StationResolver(cache)

        stations = await resolver.resolve_by_numbers("Paris", ["1", "2"])

        assert len(stations) == 1
        assert stations[0].number == 1
        assert stations[0].name == "00001 - STATION 1"

    async def test_empty_numbers_skip_the_store(self, station_cache):
        """Test empty numbers skip the store."""
        resolver = StationResolver(station_cache)

        assert await resolver.resolve_by_numbers("Paris", []) == []
        assert station_cache.calls == []

    async def test_results_follow_requested_order(self, station_cache):
        """Test results follow requested order."""
        resolver = StationResolver(station_cache)

        stations = await resolver.resolve_by_numbers("Paris", ["3", "1", "2"])

        assert [s.number for s in stations] == [3, 1, 2]

    async def test_images_number_is_never_fetched(self, station_cache):
        """Test images number is never fetched."""
        resolver = StationResolver(station_cache)

        stations = await resolver.resolve_by_numbers("Paris", ["images", "1", "404"])

        assert len(stations) <= 3
        assert [s.number for s in stations] == [1]

    async def test_only_images_requested_skips_bulk_get(self, station_cache):
        """Test requesting only the images entry skips the bulk get."""
        resolver = StationResolver(station_cache)

        assert await resolver.resolve_by_numbers("Paris", ["images"]) == []
        assert "bulk_get" not in station_cache.calls

    async def test_numbers_are_scoped_to_contract(self, station_cache):
        """Test numbers are scoped to contract."""
        resolver = StationResolver(station_cache)

        stations = await resolver.resolve_by_numbers("Lyon", ["1", "2"])

        assert [(s.contract_name, s.number) for s in stations] == [("Lyon", 1)]


@pytest.mark.asyncio
class TestResolveByGeoRadius:
    """Test nearby station lookups."""

    async def test_sorted_by_distance_within_fixed_radius(self, station_cache):
        """Test sorted by distance within fixed radius."""
        resolver = StationResolver(station_cache)

        stations = await resolver.resolve_by_geo_radius("Paris", *HOTEL_DE_VILLE, 5000)

        # Requested 5 km is ignored, the 100 km search radius applies
        assert [s.number for s in stations] == [1, 2, 3, 4]

    async def test_distances_are_non_decreasing(self, station_cache):
        """Test geo results are ordered by distance."""
        resolver = StationResolver(station_cache)
        members = await station_cache.geo_radius("Paris_stations", 2.3522, 48.8566, 100)
        distances = [m.distance for m in members]

        stations = await resolver.resolve_by_geo_radius("Paris", *HOTEL_DE_VILLE, 0)

        assert distances == sorted(distances)
        assert [s.number for s in stations] == [int(m.name) for m in members if m.name != "images"]

    async def test_requested_radius_when_enabled(self, station_cache):
        """Test requested radius when enabled."""
        resolver = StationResolver(station_cache, honor_requested_radius=True)

        stations = await resolver.resolve_by_geo_radius("Paris", *HOTEL_DE_VILLE, 2000)

        assert [s.number for s in stations] == [1, 2]

    async def test_requested_radius_of_zero_falls_back_to_default(self, station_cache):
        """Test requested radius of zero falls back to default."""
        resolver = StationResolver(station_cache, honor_requested_radius=True)

        stations = await resolver.resolve_by_geo_radius("Paris", *HOTEL_DE_VILLE, 0)

        assert [s.number for s in stations] == [1, 2, 3, 4]

    async def test_unknown_contract_is_empty(self, station_cache):
        """Test unknown contract is empty."""
        resolver = StationResolver(station_cache)

        assert await resolver.resolve_by_geo_radius("Nowhere", *HOTEL_DE_VILLE, 5000) == []


@pytest.mark.asyncio
class TestResolveByContract:
    """Test listing every station of a contract."""

    async def test_lists_all_stations_without_reserved_entries(self, station_cache):
        """Test lists all stations without reserved entries."""
        resolver = StationResolver(station_cache)

        stations = await resolver.resolve_by_contract("Paris")

        assert sorted(s.number for s in stations) == [1, 2, 3, 4, 5]
        assert all(s.contract_name == "Paris" for s in stations)

    async def test_empty_contract(self):
        """Test a contract without stations."""
        resolver = StationResolver(InMemoryStationCache())

        assert await resolver.resolve_by_contract("Paris") == []


@pytest.mark.asyncio
class TestDispatch:
    """Test strategy selection."""

    async def test_numbers_win(self, station_cache):
        """Test numbers take precedence over coordinates."""
        resolver = StationResolver(station_cache)

        stations = await resolver.resolve_stations("Paris", ["2"], lat=48.8, lng=2.3)

        assert [s.number for s in stations] == [2]

    async def test_coordinates_select_geo_search(self, station_cache):
        """Test coordinates select geo search."""
        resolver = StationResolver(station_cache)

        await resolver.resolve_stations("Paris", [], *HOTEL_DE_VILLE, radius=5000)

        assert station_cache.calls == ["geo_radius", "bulk_get"]

    @pytest.mark.parametrize("lat,lng", [(0.0, 2.3522), (48.8566, 0.0), (0.0, 0.0)])
    async def test_zero_coordinate_falls_back_to_contract(self, station_cache, lat, lng):
        """Test zero coordinate falls back to contract."""
        resolver = StationResolver(station_cache)

        stations = await resolver.resolve_stations("Paris", None, lat=lat, lng=lng)

        assert station_cache.calls == ["list_keys", "bulk_get"]
        assert len(stations) == 5


@pytest.mark.asyncio
class TestDecodePolicies:
    """Test handling of malformed cached payloads."""

    @pytest.fixture
    def broken_cache(self):
        cache = InMemoryStationCache()
        cache._values.update({
            "Paris_1": encode_station(make_station(1, 48.85, 2.35)),
            "Paris_2": "{not json",
            "Paris_3": encode_station(make_station(3, 48.86, 2.36)),
        })
        return cache

    async def test_lenient_yields_zero_valued_station(self, broken_cache):
        """Test lenient policy yields a zero-valued station."""
        resolver = StationResolver(broken_cache)

        stations = await resolver.resolve_by_numbers("Paris", ["1", "2", "3"])

        assert [s.number for s in stations] == [1, 0, 3]
        assert stations[1] == Station()

    async def test_skip_drops_malformed_payloads(self, broken_cache):
        """Test skip policy drops malformed payloads."""
        resolver = StationResolver(broken_cache, decode_policy="skip")

        stations = await resolver.resolve_by_numbers("Paris", ["1", "2", "3"])

        assert [s.number for s in stations] == [1, 3]

    async def test_strict_aborts(self, broken_cache):
        """Test strict policy aborts on a malformed payload."""
        resolver = StationResolver(broken_cache, decode_policy="strict")

        with pytest.raises(StationDecodeError):
            await resolver.resolve_by_numbers("Paris", ["1", "2", "3"])
