from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from src.domain.algorithms.geo_utils import initial_bearing_deg
from src.domain.models import GeoPoint, RouteDetails, Vehicle

_OCCUPANCY = (
    "Empty",
    "Many Seats Available",
    "Few Seats Available",
    "Standing Room Only",
    "Crowded",
    "Full",
)


@dataclass(slots=True)
class FakeVehicleGenerator:
    """Synthetic buses for development when the provider reports none.

    Places 2-4 buses per route at random points between consecutive stops.
    """

    rng: random.Random = field(default_factory=random.Random)

    def generate(self, details: RouteDetails) -> tuple[Vehicle, ...]:
        stops = details.stops
        if len(stops) < 2:
            return ()

        route_id = details.route.id
        try:
            id_base = 9000 + int(route_id) * 10
        except ValueError:
            id_base = 9000
        now = datetime.now(timezone.utc)

        vehicles: list[Vehicle] = []
        for i in range(self.rng.randint(2, 4)):
            idx = self.rng.randrange(len(stops))
            current = stops[idx]
            nxt = stops[min(idx + 1, len(stops) - 1)]

            t = self.rng.random()
            a, b = current.location, nxt.location
            position = GeoPoint(
                lat=a.lat + (b.lat - a.lat) * t,
                lon=a.lon + (b.lon - a.lon) * t,
            )
            outbound = idx < len(stops) / 2

            vehicles.append(
                Vehicle(
                    vehicle_id=str(id_base + i),
                    lat=position.lat,
                    lon=position.lon,
                    route_id=route_id,
                    block_id=str(id_base + i),
                    name=f"Dev Bus {route_id}-{i + 1}",
                    heading=initial_bearing_deg(a, b),
                    speed=float(self.rng.randrange(50)),
                    occupancy=self.rng.choice(_OCCUPANCY),
                    destination=nxt.name,
                    direction="Outbound" if outbound else "Inbound",
                    last_stop=current.name,
                    display_status="On Time",
                    last_updated=now - timedelta(seconds=self.rng.uniform(0, 120)),
                )
            )
        return tuple(vehicles)
