from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CoordinateSchema(CamelModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class DirectionsRequestSchema(CamelModel):
    origin: CoordinateSchema
    destination: CoordinateSchema
    departure_time: datetime | None = None
    max_walking_distance_meters: float | None = Field(default=None, ge=1.0)
    limit: int | None = None


class PlanLegSchema(CamelModel):
    type: Literal["walk", "bus"]
    distance_meters: float
    duration_minutes: float
    start: CoordinateSchema
    end: CoordinateSchema
    route_id: str | None = None
    route_name: str | None = None
    route_number: str | None = None
    start_stop_id: str | None = None
    start_stop_name: str | None = None
    end_stop_id: str | None = None
    end_stop_name: str | None = None
    stop_count: int | None = None
    departs_at: datetime | None = None


class PlanItinerarySchema(CamelModel):
    legs: list[PlanLegSchema]
    total_distance_meters: float
    total_duration_minutes: float
    route_id: str | None = None
    route_name: str | None = None
    route_number: str | None = None
    start_stop_id: str | None = None
    end_stop_id: str | None = None


class DirectionsResponseSchema(CamelModel):
    generated_at: datetime
    itineraries: list[PlanItinerarySchema]
