from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import RouteDetails, Stop, TransitRoute


class ITransitSnapshotRepository(ABC):
    """Read-only port for the last persisted copy of routes and stops."""

    @abstractmethod
    def list_routes(self) -> tuple[TransitRoute, ...]:
        raise NotImplementedError

    @abstractmethod
    def get_route(self, route_id: str) -> RouteDetails | None:
        raise NotImplementedError

    @abstractmethod
    def list_stops(self) -> tuple[Stop, ...]:
        raise NotImplementedError
