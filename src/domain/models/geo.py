from __future__ import annotations

import math
from dataclasses import dataclass

from src.domain.exceptions.validation import ValidationFailure


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """WGS84 coordinate. Out-of-range or non-finite values are rejected."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and -90.0 <= self.lat <= 90.0):
            raise ValidationFailure(f"Latitude must be between -90 and 90: {self.lat}")
        if not (math.isfinite(self.lon) and -180.0 <= self.lon <= 180.0):
            raise ValidationFailure(
                f"Longitude must be between -180 and 180: {self.lon}"
            )
