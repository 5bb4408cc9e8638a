from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .geo import GeoPoint


class TravelMode(str, Enum):
    WALK = "walk"
    BUS = "bus"


@dataclass(frozen=True, slots=True)
class Leg:
    mode: TravelMode
    distance_m: float
    duration_min: float
    start: GeoPoint
    end: GeoPoint
    # Transit legs only.
    route_id: str | None = None
    route_name: str | None = None
    route_number: str | None = None
    start_stop_id: str | None = None
    start_stop_name: str | None = None
    end_stop_id: str | None = None
    end_stop_name: str | None = None
    stop_count: int | None = None
    depart_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Itinerary:
    legs: tuple[Leg, ...]

    def __post_init__(self) -> None:
        if not self.legs:
            raise ValueError("An itinerary needs at least one leg")
        for a, b in zip(self.legs, self.legs[1:]):
            if a.mode is TravelMode.WALK and b.mode is TravelMode.WALK:
                raise ValueError("Adjacent walk legs must be merged")

    @property
    def total_distance_m(self) -> float:
        return float(sum(leg.distance_m for leg in self.legs))

    @property
    def total_duration_min(self) -> float:
        return float(sum(leg.duration_min for leg in self.legs))

    @property
    def transit_legs(self) -> tuple[Leg, ...]:
        return tuple(leg for leg in self.legs if leg.mode is TravelMode.BUS)

    @property
    def dominant_transit_leg(self) -> Leg | None:
        transit = self.transit_legs
        return transit[0] if len(transit) == 1 else None

    @property
    def route_id(self) -> str | None:
        leg = self.dominant_transit_leg
        return leg.route_id if leg else None

    @property
    def route_name(self) -> str | None:
        leg = self.dominant_transit_leg
        return leg.route_name if leg else None

    @property
    def route_number(self) -> str | None:
        leg = self.dominant_transit_leg
        return leg.route_number if leg else None


@dataclass(frozen=True, slots=True)
class PlanResult:
    generated_at: datetime
    itineraries: tuple[Itinerary, ...] = field(default_factory=tuple)
