"""
Availability history: one day of samples for a station, downsampled.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Sequence, Tuple, TypeVar

import structlog

from commute_api.db.timeseries import TimeSeriesStore, quote_identifier
from commute_api.schemas.stations import StationBikeState
from commute_api.services.codec import decode_samples

logger = structlog.get_logger()

T = TypeVar("T")

HISTORY_WINDOW = timedelta(hours=24)
INFLUX_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def floor_to_minute(moment: datetime) -> datetime:
    """Truncate to the minute, normalizing to naive UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.replace(second=0, microsecond=0)


def history_window(anchor: datetime) -> Tuple[datetime, datetime]:
    """Half-open [start, end) window of 24 hours from the anchor minute."""
    start = floor_to_minute(anchor)
    return start, start + HISTORY_WINDOW


def build_history_query(contract_name: str, station_number: str, anchor: datetime) -> str:
    start, end = history_window(anchor)
    return "SELECT * FROM {measurement} WHERE time >= '{start}' AND time < '{end}'".format(
        measurement=quote_identifier(f"{contract_name}_{station_number}"),
        start=start.strftime(INFLUX_TIME_FORMAT),
        end=end.strftime(INFLUX_TIME_FORMAT),
    )


def downsample(items: Sequence[T], interval: int) -> List[T]:
    """Keep items at positions 0, interval, 2*interval, ..."""
    if interval < 1:
        raise ValueError(f"Sampling interval must be >= 1, got {interval}")
    return list(items[::interval])


class HistoryService:
    """Reads station availability history from the time-series store."""

    def __init__(self, store: TimeSeriesStore, database: str):
        self.store = store
        self.database = database

    async def fetch_history(
        self,
        contract_name: str,
        station_number: str,
        date: datetime,
        sampling_interval: int,
    ) -> List[StationBikeState]:
        if sampling_interval < 1:
            raise ValueError(f"Sampling interval must be >= 1, got {sampling_interval}")

        query = build_history_query(contract_name, station_number, date)
        logger.info("History query", database=self.database, query=query)

        # Store failures propagate as TimeSeriesUnavailableError
        results = await self.store.query(self.database, query)

        if not results:
            logger.info("History query returned no results", query=query)
            return []
        if not results[0].series:
            logger.info("History query returned no series", query=query)
            return []
        rows = results[0].series[0].values
        if not rows:
            logger.info("History query returned no rows", query=query)
            return []

        samples = downsample(decode_samples(rows), sampling_interval)
        logger.info(
            "History fetched",
            contract_name=contract_name,
            station_number=station_number,
            rows=len(rows),
            samples=len(samples),
        )
        return samples
