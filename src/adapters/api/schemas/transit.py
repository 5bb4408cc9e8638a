from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class GeoPointSchema(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class TransitRouteSchema(BaseModel):
    route_id: str
    short_name: str
    long_name: str = ""
    description: str = ""
    color: str = ""
    text_color: str = ""


class StopSchema(BaseModel):
    stop_id: str
    name: str
    location: GeoPointSchema
    sequence: int = 0
    description: str | None = None
    is_time_point: bool = False


class VehicleSchema(BaseModel):
    vehicle_id: str
    route_id: str | None = None
    lat: float
    lon: float
    heading: float | None = None
    speed: float | None = None
    name: str | None = None
    destination: str | None = None
    direction: str | None = None
    occupancy: str | None = None
    last_stop: str | None = None
    display_status: str | None = None
    last_updated: datetime | None = None


class RouteDirectionSchema(BaseModel):
    code: str
    description: str | None = None


class RouteDetailsSchema(BaseModel):
    route: TransitRouteSchema
    stops: list[StopSchema]
    vehicles: list[VehicleSchema]
    directions: list[RouteDirectionSchema] = []


class TracePathSchema(BaseModel):
    name: str
    points: list[GeoPointSchema]


class RouteTraceSchema(BaseModel):
    route_id: str
    name: str
    paths: list[TracePathSchema]


class DepartureSchema(BaseModel):
    route_id: str
    direction: str
    trip_id: str
    scheduled: str
    estimated: str
    scheduled_local: str | None = None
    estimated_local: str | None = None
    departs_at: datetime | None = None
    is_completed: bool = False
    is_cancelled: bool = False
    is_last_stop_on_trip: bool = False


class StopDeparturesSchema(BaseModel):
    stop_id: str
    last_updated: str | None = None
    departures: list[DepartureSchema]


class VehiclesResponseSchema(BaseModel):
    fetched_at: datetime
    vehicles: list[VehicleSchema]


class PrefetchRequestSchema(BaseModel):
    route_ids: list[str] = Field(..., min_length=1)


class PrefetchResponseSchema(BaseModel):
    requested: int
    warmed: int
