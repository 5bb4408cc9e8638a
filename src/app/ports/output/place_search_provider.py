from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.domain.models import GeoPoint


@dataclass(frozen=True, slots=True)
class Place:
    place_id: str
    name: str
    location: GeoPoint
    address: str | None = None


class IPlaceSearchProvider(ABC):
    """Port for third-party place search (geocoding)."""

    @abstractmethod
    async def search(
        self, query: str, *, proximity: GeoPoint | None = None
    ) -> tuple[Place, ...]:
        raise NotImplementedError
