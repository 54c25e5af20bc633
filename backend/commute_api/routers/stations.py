"""
Stations API endpoints.
"""

import math
from datetime import datetime
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Query

from commute_api.config import Settings, get_settings
from commute_api.core.exceptions import InvalidDateError
from commute_api.db.stores import get_history_service, get_station_resolver
from commute_api.schemas.stations import Station, StationBikeState
from commute_api.services.history import HistoryService
from commute_api.services.stations import StationResolver

logger = structlog.get_logger()
router = APIRouter()

DATE_PARAM_FORMAT = "%Y%m%d-%H%M"

# Bounds accepted by Redis GEO commands
MAX_LATITUDE = 85.05112878
MAX_LONGITUDE = 180.0


def parse_float(value: Optional[str], default: float = 0.0) -> float:
    """Lenient float parsing: missing uses the default, garbage is 0."""
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def parse_coordinate(value: Optional[str], limit: float) -> float:
    """Like parse_float, with out-of-range coordinates treated as absent."""
    parsed = parse_float(value)
    return parsed if abs(parsed) <= limit else 0.0


def parse_numbers(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [number for number in value.split(",") if number != ""]


@router.get("", response_model=List[Station])
async def list_stations(
    contract_name: Optional[str] = Query(None, alias="contract-name"),
    numbers: Optional[str] = Query(None, description="Comma separated station numbers"),
    lat: Optional[str] = None,
    lng: Optional[str] = None,
    distance: Optional[str] = Query(None, description="Search distance in meters"),
    resolver: StationResolver = Depends(get_station_resolver),
    settings: Settings = Depends(get_settings),
) -> List[Station]:
    """Stations of a contract, by numbers, near a point, or all of them."""
    return await resolver.resolve_stations(
        contract_name if contract_name is not None else settings.default_contract_name,
        numbers=parse_numbers(numbers),
        lat=parse_coordinate(lat, MAX_LATITUDE),
        lng=parse_coordinate(lng, MAX_LONGITUDE),
        radius=parse_float(distance, default=settings.default_distance),
    )


@router.get(
    "/{contract_name}/{station_number}/{date}/availability-infos",
    response_model=List[StationBikeState],
)
async def get_availability_infos(
    contract_name: str,
    station_number: str,
    date: str,
    history: HistoryService = Depends(get_history_service),
    settings: Settings = Depends(get_settings),
) -> List[StationBikeState]:
    """One day of availability for a station, starting at date (YYYYMMDD-HHMM)."""
    try:
        anchor = datetime.strptime(date, DATE_PARAM_FORMAT)
    except ValueError:
        raise InvalidDateError(date)

    logger.info(
        "Availability history",
        contract_name=contract_name,
        station_number=station_number,
        date=anchor.isoformat(),
    )
    return await history.fetch_history(
        contract_name,
        station_number,
        anchor,
        settings.history_sampling_interval,
    )
