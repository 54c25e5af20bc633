"""
Application configuration using Pydantic Settings for type safety and validation.
Loads from environment variables with sensible defaults for development.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Commute Stations API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Commute Stations API"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Enable debug mode")
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    # Station cache
    cache_backend: Literal["redis", "memory"] = "redis"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_socket_timeout: float = Field(default=5.0, gt=0)

    # Computed Redis URL
    redis_url: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("redis_url", mode="before")
    def assemble_redis_url(cls, v: Optional[str], info) -> str:
        if isinstance(v, str) and v:
            return v
        return "redis://{host}:{port}/{db}".format(
            host=info.data.get("redis_host"),
            port=info.data.get("redis_port"),
            db=info.data.get("redis_db"),
        )

    # InfluxDB (availability history)
    db_protocol: str = "http"
    db_host: str = "localhost"
    db_port: int = 8086
    db_user: str = "commute"
    db_password: str = "commute"
    db_database: str = "commute"
    influx_timeout: float = Field(default=10.0, gt=0)

    # Computed InfluxDB URL
    influx_url: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("influx_url", mode="before")
    def assemble_influx_url(cls, v: Optional[str], info) -> str:
        if isinstance(v, str) and v:
            return v
        return "{protocol}://{host}:{port}".format(
            protocol=info.data.get("db_protocol"),
            host=info.data.get("db_host"),
            port=info.data.get("db_port"),
        )

    # Station search
    default_contract_name: str = "Paris"
    default_distance: float = Field(default=5000.0, description="Meters, used when no distance is given")
    geo_search_radius_km: float = Field(default=100.0, gt=0)
    geo_honor_requested_radius: bool = Field(
        default=False,
        description="Use the caller's distance instead of geo_search_radius_km",
    )
    station_decode_policy: Literal["lenient", "skip", "strict"] = "lenient"

    # Availability history
    history_sampling_interval: int = Field(default=60, ge=1, description="Keep every Nth sample")


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance to avoid repeated parsing."""
    return Settings()
