from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import RouteDetails, RouteTrace, Stop, StopDepartures, TransitRoute


class ITransitProvider(ABC):
    """Port for the live, read-only upstream transit provider.

    Raises `UpstreamUnavailable` on network/HTTP failure and
    `UpstreamPayloadError` when a response does not match the expected shape.
    """

    @abstractmethod
    async def list_routes(self) -> tuple[TransitRoute, ...]:
        raise NotImplementedError

    @abstractmethod
    async def get_route_details(self, route_id: str) -> RouteDetails:
        raise NotImplementedError

    @abstractmethod
    async def list_stop_departures(self) -> tuple[StopDepartures, ...]:
        raise NotImplementedError

    @abstractmethod
    async def list_stops(self) -> tuple[Stop, ...]:
        raise NotImplementedError

    @abstractmethod
    async def get_route_trace(self, route_id: str) -> RouteTrace:
        raise NotImplementedError
