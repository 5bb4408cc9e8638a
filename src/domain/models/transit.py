from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .realtime import Vehicle
from .stop import Stop

_CANCELLED_LABELS = frozenset({"cancelled", "canceled"})


@dataclass(frozen=True, slots=True)
class TransitRoute:
    """Route metadata as listed by the provider (no stops)."""

    id: str
    short_name: str
    long_name: str = ""
    description: str = ""
    color: str = ""  # hex without '#'
    text_color: str = ""  # hex without '#'
    is_visible: bool = True


@dataclass(frozen=True, slots=True)
class RouteDirection:
    code: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class RouteDetails:
    """A route with its ordered stops and the vehicles currently on it.

    `stops` is sorted by `Stop.sequence` and is the authority for whether one
    stop comes before another along the route.
    """

    route: TransitRoute
    stops: tuple[Stop, ...] = ()
    vehicles: tuple[Vehicle, ...] = ()
    directions: tuple[RouteDirection, ...] = ()

    def stop_index(self, stop_id: str) -> int | None:
        for i, stop in enumerate(self.stops):
            if stop.id == stop_id:
                return i
        return None


@dataclass(frozen=True, slots=True)
class TripRef:
    trip_id: str
    block_id: str | None = None
    direction: str | None = None
    gtfs_trip_id: str | None = None
    status_label: str | None = None


@dataclass(frozen=True, slots=True)
class Departure:
    stop_id: str
    route_id: str
    direction: str
    trip: TripRef
    scheduled_raw: str
    estimated_raw: str
    scheduled_local: str | None = None
    estimated_local: str | None = None
    scheduled_at: datetime | None = None
    estimated_at: datetime | None = None
    direction_code: str | None = None
    is_completed: bool = False
    is_last_stop_on_trip: bool = False
    stop_status_label: str | None = None

    @property
    def is_cancelled(self) -> bool:
        labels = (self.trip.status_label, self.stop_status_label)
        return any((label or "").strip().lower() in _CANCELLED_LABELS for label in labels)

    @property
    def departs_at(self) -> datetime | None:
        return self.estimated_at or self.scheduled_at


@dataclass(frozen=True, slots=True)
class StopDepartures:
    stop_id: str
    last_updated: str | None = None
    departures: tuple[Departure, ...] = ()


@dataclass(frozen=True, slots=True)
class TracePoint:
    lon: float
    lat: float
    alt: float = 0.0


@dataclass(frozen=True, slots=True)
class TracePath:
    name: str
    points: tuple[TracePoint, ...] = ()


@dataclass(frozen=True, slots=True)
class RouteTrace:
    """Route geometry parsed from the provider's map markup."""

    name: str
    paths: tuple[TracePath, ...] = ()
