"""
InfluxDB 1.x access over its HTTP query API.
Availability history lives in one measurement per station.
"""

from typing import Any, List, Optional, Protocol

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError

from commute_api.config import Settings
from commute_api.core.exceptions import TimeSeriesUnavailableError

logger = structlog.get_logger()


class SeriesResult(BaseModel):
    """One series of a statement result."""

    name: str = ""
    columns: List[str] = Field(default_factory=list)
    values: List[List[Any]] = Field(default_factory=list)


class StatementResult(BaseModel):
    statement_id: int = 0
    series: List[SeriesResult] = Field(default_factory=list)
    error: Optional[str] = None


class QueryResponse(BaseModel):
    results: List[StatementResult] = Field(default_factory=list)
    error: Optional[str] = None


class TimeSeriesStore(Protocol):
    """Narrow read contract the downsampler needs from the time-series store."""

    async def query(self, database: str, command: str) -> List[StatementResult]:
        """Run a query; failures raise TimeSeriesUnavailableError, never an empty result."""
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


def quote_identifier(name: str) -> str:
    """Double-quote an InfluxQL identifier."""
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class InfluxTimeSeriesStore:
    """TimeSeriesStore talking to InfluxDB's /query endpoint with httpx."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "InfluxTimeSeriesStore":
        client = httpx.AsyncClient(
            base_url=settings.influx_url,
            auth=(settings.db_user, settings.db_password),
            timeout=settings.influx_timeout,
        )
        return cls(client)

    async def query(self, database: str, command: str) -> List[StatementResult]:
        try:
            response = await self._client.get("/query", params={"db": database, "q": command})
        except httpx.HTTPError as e:
            logger.error("InfluxDB request failed", database=database, error=str(e))
            raise TimeSeriesUnavailableError(str(e)) from e

        try:
            body = QueryResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            if response.is_error:
                raise TimeSeriesUnavailableError(f"HTTP {response.status_code}") from e
            raise TimeSeriesUnavailableError(f"unreadable response: {e}") from e

        # Top-level errors come with 4xx/5xx, statement errors with 200
        error = body.error or next((r.error for r in body.results if r.error), None)
        if error or response.is_error:
            logger.error(
                "InfluxDB query rejected",
                database=database,
                status=response.status_code,
                error=error,
            )
            raise TimeSeriesUnavailableError(error or f"HTTP {response.status_code}")

        return body.results

    async def ping(self) -> bool:
        try:
            response = await self._client.get("/ping")
        except httpx.HTTPError as e:
            logger.warning("InfluxDB ping failed", error=str(e))
            return False
        return response.status_code == 204

    async def close(self) -> None:
        await self._client.aclose()
