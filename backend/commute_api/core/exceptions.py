"""
Custom exceptions for the Commute Stations API.
"""

from typing import Optional


class CommuteApiException(Exception):
    """Base exception for application."""

    def __init__(
        self,
        detail: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        super().__init__(detail)


class StoreUnavailableError(CommuteApiException):
    """A backing store could not be reached or rejected the request."""

    def __init__(self, store: str, detail: str, error_code: str = "STORE_UNAVAILABLE"):
        self.store = store
        super().__init__(
            detail=f"{store} unavailable: {detail}",
            status_code=503,
            error_code=error_code,
        )


class CacheUnavailableError(StoreUnavailableError):
    """Station cache (Redis) failure."""

    def __init__(self, detail: str):
        super().__init__("Station cache", detail, error_code="CACHE_UNAVAILABLE")


class TimeSeriesUnavailableError(StoreUnavailableError):
    """Availability history store (InfluxDB) failure."""

    def __init__(self, detail: str):
        super().__init__("Time-series store", detail, error_code="TIMESERIES_UNAVAILABLE")


class StationDecodeError(CommuteApiException):
    """A cached station payload could not be decoded."""

    def __init__(self, detail: str):
        super().__init__(
            detail=f"Invalid station payload: {detail}",
            status_code=502,
            error_code="STATION_DECODE_ERROR",
        )


class InvalidDateError(CommuteApiException):
    """History date is not in YYYYMMDD-HHMM format."""

    def __init__(self, value: str):
        super().__init__(
            detail=f"Invalid date {value!r}, expected YYYYMMDD-HHMM",
            status_code=400,
            error_code="INVALID_DATE",
        )
