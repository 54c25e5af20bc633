"""
Record codec: station payloads from the cache and availability rows
from the time-series store.
"""

from typing import Any, Iterable, List, Sequence

import structlog
from pydantic import ValidationError

from commute_api.core.exceptions import StationDecodeError
from commute_api.schemas.stations import Station, StationBikeState
from commute_api.utils.json import JSONDecodeError, json_dumps, json_loads

logger = structlog.get_logger()


def encode_station(station: Station) -> str:
    """Serialize a station to its cache wire format."""
    return json_dumps(station.model_dump())


def decode_station_strict(raw: str | bytes) -> Station:
    """Decode a cached payload, raising StationDecodeError when malformed."""
    try:
        payload = json_loads(raw)
    except JSONDecodeError as e:
        raise StationDecodeError(str(e)) from e

    if not isinstance(payload, dict):
        raise StationDecodeError(f"expected an object, got {type(payload).__name__}")

    try:
        return Station.model_validate(payload)
    except ValidationError as e:
        raise StationDecodeError(str(e)) from e


def decode_station(raw: str | bytes) -> Station:
    """
    Decode a cached payload leniently.

    A malformed payload yields a zero-valued Station rather than an error,
    so a returned Station does not imply the payload was valid.
    """
    try:
        return decode_station_strict(raw)
    except StationDecodeError as e:
        logger.warning("Malformed station payload, using zero value", error=e.detail)
        return Station()


def _to_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0


def decode_samples(rows: Iterable[Sequence[Any]]) -> List[StationBikeState]:
    """Map [timestamp, available_bike_stands, available_bikes] rows, keeping order."""
    return [
        StationBikeState(
            time=str(row[0]),
            available_bike_stands=_to_int(row[1]),
            available_bikes=_to_int(row[2]),
        )
        for row in rows
    ]
