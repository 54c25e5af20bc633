"""
Station and availability history schemas.
Field names are the JSON interchange format shared with the station cache.
"""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class WireModel(BaseModel):
    """Cached JSON object; a null field keeps its zero value."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class Image(WireModel):
    """Station picture reference, passed through untouched."""

    uid: int = 0
    width: int = 0
    quality: int = 0


class Position(WireModel):
    lat: float = 0.0
    lng: float = 0.0


class Station(WireModel):
    """Snapshot of one docking station as stored in the cache."""

    number: int = 0
    name: str = ""
    address: str = ""
    position: Position = Field(default_factory=Position)
    banking: bool = False
    bonus: bool = False
    status: str = ""
    contract_name: str = ""
    bike_stands: int = 0
    available_bike_stands: int = 0
    available_bikes: int = 0
    last_update: str = ""
    images: List[Image] = Field(default_factory=list)

    @field_validator("last_update", mode="before")
    def stringify_last_update(cls, v):
        """Feeds publish epoch milliseconds; keep them as their string token."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("images", mode="before")
    def null_images_are_empty(cls, v):
        if isinstance(v, list):
            return [{} if image is None else image for image in v]
        return v


class StationBikeState(BaseModel):
    """One historical availability sample."""

    model_config = ConfigDict(frozen=True)

    time: str
    available_bike_stands: int
    available_bikes: int


class GeoMember(BaseModel):
    """Member returned by a geo radius query, distance in km."""

    name: str
    distance: float = 0.0
