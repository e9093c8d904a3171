"""MPK Wrocław records (Pydantic v2).

The MPK service answers with two spellings for the same vehicle: a compact
one-letter key set (`getPositions`) and a verbose key set. `AliasChoices`
accepts both.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from core.domain.models import PositionalBatch


class VehicleType(str, Enum):
    BUS = "BUS"
    TRAM = "TRAM"


_VEHICLE_TYPE_SHORT = {"b": VehicleType.BUS, "t": VehicleType.TRAM}


class Vehicle(BaseModel):
    """One vehicle position from `getPositions`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: int = Field(..., validation_alias=AliasChoices("code", "v"))
    course: int = Field(..., validation_alias=AliasChoices("course", "c"))
    # `x`/`y` are the only coordinate spellings the service emits.
    latitude: float = Field(..., validation_alias=AliasChoices("x", "latitude"))
    longitude: float = Field(..., validation_alias=AliasChoices("y", "longitude"))
    line: str = Field(..., validation_alias=AliasChoices("line", "l"))
    vehicle_type: VehicleType = Field(..., validation_alias=AliasChoices("type", "t", "vehicle_type"))
    symbol: str = Field(..., validation_alias=AliasChoices("symbol", "s"))
    direction: str = Field(..., validation_alias=AliasChoices("direction", "d"))
    delay: int = Field(..., validation_alias=AliasChoices("delay", "e"))

    @field_validator("vehicle_type", mode="before")
    @classmethod
    def _short_vehicle_type(cls, value: Any) -> Any:
        if isinstance(value, str) and value in _VEHICLE_TYPE_SHORT:
            return _VEHICLE_TYPE_SHORT[value]
        return value


VehicleList = PositionalBatch[Vehicle]


class StopDeparture(BaseModel):
    """Upcoming departure from a stop (`getPostInfo`)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str = Field(..., alias="l")
    direction: str = Field(..., alias="d")
    time: str = Field(..., alias="t")
    course: int = Field(..., alias="c", ge=0)


class Course(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    symbol: str = Field(..., alias="s")
    time: str = Field(..., alias="t")


class CourseInfo(BaseModel):
    """Stops of one course plus its encoded polyline (`getCoursePosts`)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    course: int = Field(..., alias="c", ge=0)
    encoded: str = Field(..., alias="p", description="Encoded polyline of the route.")
    stops: list[Course] = Field(..., alias="r")


class PostPlateHour(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hour: int = Field(..., alias="h")
    minutes: list[str] = Field(
        ...,
        alias="m",
        description="Minutes formatted as `<number><abbreviation>`.",
    )


class PostPlateDay(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    day_name: str = Field(..., alias="d")
    order: int = Field(..., alias="o", ge=0)
    hours: list[PostPlateHour] = Field(..., alias="h")


class PostPlateTableByDirection(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    direction: str = Field(..., alias="n")
    days: list[PostPlateDay] = Field(..., alias="d")


class PostPlateTimeTable(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    valid_from: str = Field(..., alias="t")
    values: list[PostPlateTableByDirection] = Field(..., alias="v")


class PostPlate(BaseModel):
    """Printed timetable of a stop for one line (`getPostPlate`)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    line: str = Field(..., alias="l")
    post: str = Field(..., alias="p")
    abbreviations: list[str] = Field(..., alias="s")
    time_table: list[PostPlateTimeTable] = Field(..., alias="t")
