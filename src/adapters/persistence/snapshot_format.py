from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from src.domain.exceptions import ValidationFailure
from src.domain.models import GeoPoint, RouteDetails, Stop, TransitRoute


class SnapshotStopSchema(BaseModel):
    id: str
    name: str
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    sequence: int = 0


class SnapshotRouteSchema(BaseModel):
    id: str
    number: str
    name: str = ""
    color: str = ""
    stops: list[SnapshotStopSchema] = []


class SnapshotSchema(BaseModel):
    routes: list[SnapshotRouteSchema] = []
    stops: list[SnapshotStopSchema] | None = None


@dataclass(frozen=True, slots=True)
class TransitSnapshot:
    routes_by_id: dict[str, RouteDetails]
    stops: tuple[Stop, ...]


def _stop(s: SnapshotStopSchema) -> Stop:
    return Stop(
        id=s.id,
        name=s.name,
        location=GeoPoint(lat=s.latitude, lon=s.longitude),
        sequence=s.sequence,
    )


def parse_snapshot(data: Any) -> TransitSnapshot:
    """Build a snapshot from the persisted mirror document.

    Stops are ordered by `sequence` within each route. When the document has
    no top-level stop list, it is derived from the routes (first seen wins).
    """

    try:
        doc = SnapshotSchema.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailure(f"Invalid transit snapshot: {exc}") from exc

    routes_by_id: dict[str, RouteDetails] = {}
    for r in doc.routes:
        stops = tuple(_stop(s) for s in sorted(r.stops, key=lambda s: s.sequence))
        routes_by_id[r.id] = RouteDetails(
            route=TransitRoute(
                id=r.id, short_name=r.number, long_name=r.name, color=r.color
            ),
            stops=stops,
        )

    if doc.stops is not None:
        all_stops = tuple(_stop(s) for s in doc.stops)
    else:
        seen: dict[str, Stop] = {}
        for details in routes_by_id.values():
            for stop in details.stops:
                seen.setdefault(stop.id, stop)
        all_stops = tuple(seen.values())

    return TransitSnapshot(routes_by_id=routes_by_id, stops=all_stops)
