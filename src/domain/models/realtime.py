from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Vehicle:
    """Snapshot of one bus as reported by the provider. Never diffed."""

    vehicle_id: str
    lat: float
    lon: float
    route_id: str | None = None
    block_id: str | None = None
    name: str | None = None
    heading: float | None = None
    speed: float | None = None
    occupancy: str | None = None
    destination: str | None = None
    direction: str | None = None
    last_stop: str | None = None
    display_status: str | None = None
    last_updated: datetime | None = None

    @property
    def has_valid_position(self) -> bool:
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            return False
        return self.lat != 0.0 or self.lon != 0.0
