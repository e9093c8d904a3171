"""SIMS mirror records (Pydantic v2).

The SIMS API is camelCase, sends timestamps as epoch milliseconds and uses
empty strings where a value is absent.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _millis_to_datetime(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return _EPOCH + timedelta(milliseconds=value)
        except (OverflowError, ValueError) as exc:
            raise ValueError(f"epoch milliseconds out of range: {value}") from exc
    return value


class _SimsModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class SimsVehicle(_SimsModel):
    """Vehicle position from the `vehicles` endpoint."""

    side_number: str
    # Upstream spelling.
    receive_time: datetime = Field(..., alias="recieveTime")
    is_connected: bool
    latitude: float
    longitude: float
    previous_latitude: float
    previous_longitude: float
    brigade: str | None = None
    direction: str | None = None
    line: str | None = Field(default=None, description="Present when `is_connected` is true.")
    delay: int | None = None

    @field_validator("receive_time", mode="before")
    @classmethod
    def _receive_time_millis(cls, value: Any) -> Any:
        return _millis_to_datetime(value)

    @field_validator("brigade", "direction", "line", mode="before")
    @classmethod
    def _empty_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SimsBusStop(_SimsModel):
    code: str = Field(..., alias="busStopCode")
    name: str = Field(..., alias="busStopName")
    latitude: float = Field(..., alias="busStopLatitude")
    longitude: float = Field(..., alias="busStopLongitude")


class TimetableLine(_SimsModel):
    id: int = Field(..., ge=0)
    name: str
    number: str

    @field_validator("number", mode="before")
    @classmethod
    def _trim_number(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class TimetableDirection(_SimsModel):
    id: int = Field(..., ge=0)
    name: str


class Timetable(_SimsModel):
    """One scheduled departure from `timetables/busStops/<code>`."""

    line: TimetableLine
    direction: TimetableDirection
    timetable_departure_time: datetime
    show_type: int
    departure_hide: bool

    @field_validator("timetable_departure_time", mode="before")
    @classmethod
    def _departure_millis(cls, value: Any) -> Any:
        return _millis_to_datetime(value)
