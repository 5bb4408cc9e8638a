"""Strict shapes for the transit provider's JSON payloads.

Each `validate_*` helper returns a tagged `Ok`/`Err` result; nothing
partially typed ever leaves this module.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err:
    error: str


ParseResult = Union[Ok[T], Err]


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1"}
    return False


def _strip_hash(value: str | None) -> str:
    s = (value or "").strip()
    return s[1:] if s.startswith("#") else s


class RawRoute(_Payload):
    route_id: int = Field(alias="RouteId")
    short_name: str = Field(alias="ShortName")
    long_name: str | None = Field(default="", alias="LongName")
    description: str | None = Field(default=None, alias="Description")
    color: str | None = Field(default="", alias="Color")
    text_color: str | None = Field(default="", alias="TextColor")
    is_visible: bool = Field(default=True, alias="IsVisible")

    @field_validator("short_name", mode="before")
    @classmethod
    def _short_name_to_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, (int, float)) else v

    @field_validator("is_visible", mode="before")
    @classmethod
    def _visible(cls, v: Any) -> bool:
        return True if v is None else _coerce_bool(v)

    @field_validator("color", "text_color", mode="after")
    @classmethod
    def _hex(cls, v: str | None) -> str:
        return _strip_hash(v)


class RawStop(_Payload):
    stop_id: int = Field(alias="StopId")
    name: str = Field(alias="Name")
    latitude: float = Field(alias="Latitude", ge=-90.0, le=90.0)
    longitude: float = Field(alias="Longitude", ge=-180.0, le=180.0)
    description: str | None = Field(default=None, alias="Description")
    is_time_point: bool = Field(default=False, alias="IsTimePoint")
    stop_record_id: int | None = Field(default=None, alias="StopRecordId")


class RawVehicle(_Payload):
    vehicle_id: int = Field(alias="VehicleId")
    latitude: float = Field(alias="Latitude")
    longitude: float = Field(alias="Longitude")
    route_id: int | None = Field(default=None, alias="RouteId")
    block_farebox_id: int | None = Field(default=None, alias="BlockFareboxId")
    name: str | None = Field(default=None, alias="Name")
    heading: float | None = Field(default=None, alias="Heading")
    speed: float | None = Field(default=None, alias="Speed")
    occupancy: str | None = Field(default=None, alias="OccupancyStatusReportLabel")
    destination: str | None = Field(default=None, alias="Destination")
    direction: str | None = Field(default=None, alias="Direction")
    last_stop: str | None = Field(default=None, alias="LastStop")
    display_status: str | None = Field(default=None, alias="DisplayStatus")
    last_updated: str | None = Field(default=None, alias="LastUpdated")


class RawDirection(_Payload):
    dir: str = Field(alias="Dir")
    description: str | None = Field(default=None, alias="DirectionDesc")


class RawRouteDetails(_Payload):
    route_id: int = Field(alias="RouteId")
    short_name: str = Field(alias="ShortName")
    long_name: str | None = Field(default="", alias="LongName")
    color: str | None = Field(default="", alias="Color")
    description: str | None = Field(default="", alias="GoogleDescription")
    directions: list[RawDirection] | None = Field(default=None, alias="Directions")
    stops: list[RawStop] | None = Field(default=None, alias="Stops")
    vehicles: list[RawVehicle] | None = Field(default=None, alias="Vehicles")

    @field_validator("color", mode="after")
    @classmethod
    def _hex(cls, v: str | None) -> str:
        return _strip_hash(v)


class RawTrip(_Payload):
    trip_id: int = Field(alias="TripId")
    block_farebox_id: int | None = Field(default=None, alias="BlockFareboxId")
    gtfs_trip_id: str | None = Field(default=None, alias="GtfsTripId")
    trip_direction: str | None = Field(default=None, alias="TripDirection")
    status_label: str | None = Field(default=None, alias="TripStatusReportLabel")


class RawStopDeparture(_Payload):
    edt: str = Field(alias="EDT")
    edt_local: str | None = Field(default=None, alias="EDTLocalTime")
    sdt: str = Field(alias="SDT")
    sdt_local: str | None = Field(default=None, alias="SDTLocalTime")
    is_completed: bool = Field(alias="IsCompleted")
    is_last_stop_on_trip: bool = Field(default=False, alias="IsLastStopOnTrip")
    stop_status_label: str | None = Field(default=None, alias="StopStatusReportLabel")
    trip: RawTrip = Field(alias="Trip")


class RawRouteDirection(_Payload):
    direction: str = Field(alias="Direction")
    direction_code: str | None = Field(default=None, alias="DirectionCode")
    route_id: str = Field(alias="RouteId")
    departures: list[RawStopDeparture] = Field(alias="Departures")
    is_done: bool = Field(default=False, alias="IsDone")

    @field_validator("route_id", mode="before")
    @classmethod
    def _route_id_to_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class RawStopDepartureInfo(_Payload):
    stop_id: int = Field(alias="StopId")
    last_updated: str | None = Field(default=None, alias="LastUpdated")
    route_directions: list[RawRouteDirection] = Field(alias="RouteDirections")


_ROUTES = TypeAdapter(list[RawRoute])
_ROUTE_DETAILS = TypeAdapter(RawRouteDetails)
_STOPS = TypeAdapter(list[RawStop])
_DEPARTURES = TypeAdapter(list[RawStopDepartureInfo])


def _validate(adapter: TypeAdapter[Any], data: Any) -> ParseResult[Any]:
    try:
        return Ok(adapter.validate_python(data))
    except ValidationError as exc:
        return Err(str(exc))


def validate_routes(data: Any) -> ParseResult[list[RawRoute]]:
    return _validate(_ROUTES, data)


def validate_route_details(data: Any) -> ParseResult[RawRouteDetails]:
    return _validate(_ROUTE_DETAILS, data)


def validate_stops(data: Any) -> ParseResult[list[RawStop]]:
    return _validate(_STOPS, data)


def validate_departures(data: Any) -> ParseResult[list[RawStopDepartureInfo]]:
    return _validate(_DEPARTURES, data)


_MS_DATE = re.compile(r"^/Date\((-?\d+)([+-]\d{4})?\)/$")


def parse_provider_time(raw: str | None) -> datetime | None:
    """Parse `/Date(ms[+-hhmm])/` or ISO-8601 timestamps.

    `/Date(...)/` values become aware datetimes in the embedded offset (UTC if
    none). ISO values keep whatever offset they carry.
    """

    if not raw:
        return None
    text = raw.strip()
    m = _MS_DATE.match(text)
    if m:
        ms = int(m.group(1))
        tz = timezone.utc
        if m.group(2):
            sign = -1 if m.group(2)[0] == "-" else 1
            hh, mm = int(m.group(2)[1:3]), int(m.group(2)[3:5])
            tz = timezone(sign * timedelta(hours=hh, minutes=mm))
        return datetime.fromtimestamp(ms / 1000.0, tz=tz)
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
