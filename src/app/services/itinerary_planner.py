from __future__ import annotations

import asyncio
import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from src.domain.algorithms.geo_utils import haversine_distance_m, polyline_distance_m
from src.domain.exceptions import (
    InvalidPlanRequest,
    NoNearbyStops,
    NotFound,
    PlanningUnavailable,
    UpstreamUnavailable,
)
from src.domain.models import (
    Departure,
    GeoPoint,
    Itinerary,
    Leg,
    PlanResult,
    RouteDetails,
    TravelMode,
)

from .transit_data_service import TransitDataService

logger = logging.getLogger(__name__)

WALKING_SPEED_MPS = 1.4  # ~5 km/h
BUS_SPEED_MPS = 8.33  # ~30 km/h average urban speed
BUS_DWELL_S = 30.0
DEFAULT_MAX_WALK_M = 1000.0
DEFAULT_LIMIT = 3
MAX_LIMIT = 5
DEFAULT_MINUTES_PER_STOP = 2.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def normalize_limit(limit: int | None) -> int:
    if not limit:
        return DEFAULT_LIMIT
    return min(max(int(limit), 1), MAX_LIMIT)


@dataclass(frozen=True, slots=True)
class PlanOptions:
    max_walking_distance_m: float = DEFAULT_MAX_WALK_M
    limit: int | None = None
    departure_time: datetime | None = None


@dataclass(frozen=True, slots=True)
class _Candidate:
    details: RouteDetails
    start_index: int
    end_index: int
    start_walk_m: float
    end_walk_m: float
    bus_distance_m: float

    @property
    def stop_count(self) -> int:
        return self.end_index - self.start_index + 1


DepartureIndex = dict[tuple[str, str], list[Departure]]


@dataclass(slots=True)
class ItineraryPlanner:
    """Walk + bus + walk itineraries between two coordinates.

    - Stops within walking distance of each endpoint are boarding/alighting
      candidates; a route qualifies only when the boarding stop comes first
      in its stop sequence.
    - Bus time comes from the live departure board when a usable departure
      exists, otherwise from a fixed per-stop estimate.
    - The direct walk is always ranked with the transit options, so it is
      the only result when no route connects the endpoints.
    """

    transit_data: TransitDataService

    walk_speed_mps: float = WALKING_SPEED_MPS
    bus_speed_mps: float = BUS_SPEED_MPS
    bus_dwell_s: float = BUS_DWELL_S
    minutes_per_stop: float = DEFAULT_MINUTES_PER_STOP

    def __post_init__(self) -> None:
        if os.getenv("PLANNER_MINUTES_PER_STOP"):
            self.minutes_per_stop = float(os.environ["PLANNER_MINUTES_PER_STOP"])

    async def plan(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        options: PlanOptions | None = None,
    ) -> PlanResult:
        options = options or PlanOptions()
        if not (options.max_walking_distance_m >= 1.0):
            raise InvalidPlanRequest("maxWalkingDistanceMeters must be at least 1")

        limit = normalize_limit(options.limit)
        depart_at = _aware(options.departure_time or _utcnow())

        network = await self._load_network()

        try:
            candidates = self._candidates(
                network, origin, destination, float(options.max_walking_distance_m)
            )
        except NoNearbyStops as exc:
            logger.info("Walking only: %s", exc)
            candidates = []

        itineraries: list[Itinerary] = []
        if candidates:
            index = await self._departure_index()
            itineraries = [
                self._build(c, origin, destination, depart_at, index)
                for c in candidates
            ]
        # The direct walk competes with transit; it is appended last so it
        # loses exact ties.
        itineraries.append(self._walking_only(origin, destination))
        itineraries.sort(key=lambda it: (it.total_duration_min, it.total_distance_m))

        return PlanResult(generated_at=_utcnow(), itineraries=tuple(itineraries[:limit]))

    async def _load_network(self) -> list[RouteDetails]:
        routes = [r for r in await self.transit_data.list_routes() if r.is_visible]
        if not routes:
            raise PlanningUnavailable("No transit routes available")

        async def _details(route_id: str) -> RouteDetails | None:
            try:
                return await self.transit_data.get_route_details(route_id)
            except (UpstreamUnavailable, NotFound) as exc:
                logger.warning("Skipping route %s while planning: %s", route_id, exc)
                return None

        results = await asyncio.gather(*(_details(r.id) for r in routes))
        loaded = [d for d in results if d is not None]
        if not loaded:
            raise PlanningUnavailable("No route details could be loaded")
        return [d for d in loaded if len(d.stops) >= 2]

    def _candidates(
        self,
        network: list[RouteDetails],
        origin: GeoPoint,
        destination: GeoPoint,
        max_walk_m: float,
    ) -> list[_Candidate]:
        near_origin = False
        near_destination = False
        out: list[_Candidate] = []

        for details in network:
            stops = details.stops
            starts: list[tuple[int, float]] = []
            ends: list[tuple[int, float]] = []
            for i, stop in enumerate(stops):
                d_start = haversine_distance_m(origin, stop.location)
                if d_start <= max_walk_m:
                    starts.append((i, d_start))
                d_end = haversine_distance_m(stop.location, destination)
                if d_end <= max_walk_m:
                    ends.append((i, d_end))

            near_origin = near_origin or bool(starts)
            near_destination = near_destination or bool(ends)

            for i, walk_in in starts:
                for j, walk_out in ends:
                    # Only board before alighting along the stop sequence.
                    if j <= i:
                        continue
                    bus_m = polyline_distance_m(
                        tuple(s.location for s in stops[i : j + 1])
                    )
                    if not math.isfinite(bus_m) or bus_m <= 0:
                        continue
                    out.append(
                        _Candidate(
                            details=details,
                            start_index=i,
                            end_index=j,
                            start_walk_m=walk_in,
                            end_walk_m=walk_out,
                            bus_distance_m=bus_m,
                        )
                    )

        if not near_origin or not near_destination:
            raise NoNearbyStops(
                f"No stops within {max_walk_m:.0f} m of "
                f"{'origin' if not near_origin else 'destination'}"
            )
        return out

    async def _departure_index(self) -> DepartureIndex:
        index: DepartureIndex = {}
        for board in await self.transit_data.list_stop_departures():
            for dep in board.departures:
                index.setdefault((dep.stop_id, dep.route_id), []).append(dep)
        return index

    def _walk_minutes(self, distance_m: float) -> float:
        return distance_m / self.walk_speed_mps / 60.0

    def _next_departure(
        self, departures: list[Departure], not_before: datetime
    ) -> datetime | None:
        best: datetime | None = None
        for dep in departures:
            if dep.is_completed or dep.is_cancelled or dep.departs_at is None:
                continue
            at = _aware(dep.departs_at)
            if at < not_before:
                continue
            if best is None or at < best:
                best = at
        return best

    def _transit_minutes(
        self, c: _Candidate, at_stop: datetime, index: DepartureIndex
    ) -> tuple[float, datetime | None]:
        start_stop = c.details.stops[c.start_index]
        departure = self._next_departure(
            index.get((start_stop.id, c.details.route.id), []), at_stop
        )
        if departure is None:
            return (c.end_index - c.start_index) * self.minutes_per_stop, None

        wait_s = max(0.0, (departure - at_stop).total_seconds())
        ride_s = c.bus_distance_m / self.bus_speed_mps + self.bus_dwell_s * max(
            c.stop_count - 1, 0
        )
        return (wait_s + ride_s) / 60.0, departure

    def _build(
        self,
        c: _Candidate,
        origin: GeoPoint,
        destination: GeoPoint,
        depart_at: datetime,
        index: DepartureIndex,
    ) -> Itinerary:
        route = c.details.route
        start_stop = c.details.stops[c.start_index]
        end_stop = c.details.stops[c.end_index]

        walk_in_min = self._walk_minutes(c.start_walk_m)
        at_stop = depart_at + timedelta(minutes=walk_in_min)
        bus_min, bus_departs = self._transit_minutes(c, at_stop, index)

        return Itinerary(
            legs=(
                Leg(
                    mode=TravelMode.WALK,
                    distance_m=c.start_walk_m,
                    duration_min=walk_in_min,
                    start=origin,
                    end=start_stop.location,
                    end_stop_name=start_stop.name,
                ),
                Leg(
                    mode=TravelMode.BUS,
                    distance_m=c.bus_distance_m,
                    duration_min=bus_min,
                    start=start_stop.location,
                    end=end_stop.location,
                    route_id=route.id,
                    route_name=route.long_name or route.short_name,
                    route_number=route.short_name,
                    start_stop_id=start_stop.id,
                    start_stop_name=start_stop.name,
                    end_stop_id=end_stop.id,
                    end_stop_name=end_stop.name,
                    stop_count=c.stop_count,
                    depart_at=bus_departs,
                ),
                Leg(
                    mode=TravelMode.WALK,
                    distance_m=c.end_walk_m,
                    duration_min=self._walk_minutes(c.end_walk_m),
                    start=end_stop.location,
                    end=destination,
                ),
            )
        )

    def _walking_only(self, origin: GeoPoint, destination: GeoPoint) -> Itinerary:
        distance_m = haversine_distance_m(origin, destination)
        return Itinerary(
            legs=(
                Leg(
                    mode=TravelMode.WALK,
                    distance_m=distance_m,
                    duration_min=self._walk_minutes(distance_m),
                    start=origin,
                    end=destination,
                ),
            )
        )
