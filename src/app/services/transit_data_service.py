from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Callable, Iterable, TypeVar

from src.app.ports.output import ITransitProvider, ITransitSnapshotRepository
from src.domain.exceptions import NotFound, RouteNotFound, UpstreamUnavailable
from src.domain.models import (
    RouteDetails,
    RouteTrace,
    Stop,
    StopDepartures,
    TransitRoute,
    Vehicle,
)

from . import cache_keys as keys
from .cache_service import CacheService
from .fake_vehicles import FakeVehicleGenerator

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class TransitDataService:
    """Current routes, stops, departures and vehicles with per-kind staleness.

    Live provider first (through the cache); when the provider is down, the
    persisted snapshot; then an empty result for lists, or `RouteNotFound`
    for a single route.
    """

    provider: ITransitProvider
    cache: CacheService
    snapshot_repository: ITransitSnapshotRepository | None = None
    fake_vehicles: FakeVehicleGenerator | None = None

    async def _from_snapshot(
        self, read: Callable[[ITransitSnapshotRepository], T]
    ) -> T | None:
        repo = self.snapshot_repository
        if repo is None:
            return None
        try:
            return await asyncio.to_thread(read, repo)
        except Exception as exc:  # any storage failure means "no snapshot"
            logger.error("Transit snapshot unavailable: %s", exc)
            return None

    def _with_fake_vehicles(self, details: RouteDetails) -> RouteDetails:
        if self.fake_vehicles is None:
            return details
        return replace(details, vehicles=self.fake_vehicles.generate(details))

    async def list_routes(self) -> tuple[TransitRoute, ...]:
        try:
            return await self.cache.get_cached(
                keys.ROUTES,
                self.provider.list_routes,
                keys.ROUTES_TTL_S,
                value_type=tuple[TransitRoute, ...],
            )
        except UpstreamUnavailable as exc:
            logger.warning("Routes unavailable upstream, using snapshot: %s", exc)
            routes = await self._from_snapshot(lambda repo: repo.list_routes())
            return routes or ()

    async def _fetch_route_details(self, route_id: str) -> RouteDetails:
        details = await self.provider.get_route_details(route_id)
        return self._with_fake_vehicles(details)

    async def get_route_details(self, route_id: str) -> RouteDetails:
        try:
            return await self.cache.get_cached(
                keys.route_details(route_id),
                lambda: self._fetch_route_details(route_id),
                keys.ROUTE_DETAILS_TTL_S,
                value_type=RouteDetails,
            )
        except (UpstreamUnavailable, NotFound) as exc:
            logger.warning(
                "Route %s unavailable upstream, using snapshot: %s", route_id, exc
            )
            details = await self._from_snapshot(lambda repo: repo.get_route(route_id))
            if details is None:
                raise RouteNotFound(route_id) from exc
            return self._with_fake_vehicles(details)

    async def list_stops(self) -> tuple[Stop, ...]:
        try:
            return await self.cache.get_cached(
                keys.STOPS,
                self.provider.list_stops,
                keys.STOPS_TTL_S,
                value_type=tuple[Stop, ...],
            )
        except UpstreamUnavailable as exc:
            logger.warning("Stops unavailable upstream, using snapshot: %s", exc)
            stops = await self._from_snapshot(lambda repo: repo.list_stops())
            return stops or ()

    async def list_stop_departures(
        self, stop_id: str | None = None
    ) -> tuple[StopDepartures, ...]:
        """Departure boards for every stop, or for `stop_id` only.

        The whole board is cached as one entry and filtered afterwards.
        """

        try:
            boards = await self.cache.get_cached(
                keys.DEPARTURES,
                self.provider.list_stop_departures,
                keys.DEPARTURES_TTL_S,
                value_type=tuple[StopDepartures, ...],
            )
        except UpstreamUnavailable as exc:
            logger.warning("Stop departures unavailable: %s", exc)
            return ()

        if stop_id is not None:
            return tuple(b for b in boards if b.stop_id == str(stop_id))
        return boards

    async def list_vehicles(
        self, *, route_ids: set[str] | None = None
    ) -> tuple[Vehicle, ...]:
        vehicles = await self.cache.get_cached_with_jitter(
            keys.VEHICLES,
            self._collect_vehicles,
            keys.VEHICLES_TTL_S,
            keys.VEHICLES_JITTER_PERCENT,
            value_type=tuple[Vehicle, ...],
        )
        if route_ids:
            vehicles = tuple(
                v for v in vehicles if v.route_id and v.route_id in route_ids
            )
        return vehicles

    async def _collect_vehicles(self) -> tuple[Vehicle, ...]:
        routes = await self.list_routes()
        route_keys = [keys.route_details(r.id) for r in routes]
        cached = await self.cache.get_cached_batch(route_keys, value_type=RouteDetails)

        async def _vehicles_for(route: TransitRoute) -> tuple[Vehicle, ...]:
            details = cached.get(keys.route_details(route.id))
            if details is None:
                try:
                    details = await self.get_route_details(route.id)
                except (UpstreamUnavailable, NotFound) as exc:
                    logger.error("Error fetching vehicles for route %s: %s", route.id, exc)
                    return ()
            return tuple(v for v in details.vehicles if v.has_valid_position)

        per_route = await asyncio.gather(*(_vehicles_for(r) for r in routes))
        return tuple(v for group in per_route for v in group)

    async def get_route_trace(self, route_id: str) -> RouteTrace:
        try:
            return await self.cache.get_cached(
                keys.route_trace(route_id),
                lambda: self.provider.get_route_trace(route_id),
                keys.ROUTE_TRACE_TTL_S,
                value_type=RouteTrace,
            )
        except UpstreamUnavailable as exc:
            logger.error("Route trace for %s unavailable: %s", route_id, exc)
            return RouteTrace(name="Unavailable")

    async def prefetch_route_details(self, route_ids: Iterable[str]) -> int:
        """Warm the cache for several routes. Returns how many succeeded."""

        async def _one(route_id: str) -> bool:
            try:
                await self.get_route_details(route_id)
            except (UpstreamUnavailable, NotFound) as exc:
                logger.warning("Failed to prefetch route %s: %s", route_id, exc)
                return False
            return True

        results = await asyncio.gather(*(_one(r) for r in route_ids))
        return sum(1 for ok in results if ok)

    async def invalidate_realtime(self) -> int:
        deleted = await self.cache.delete_pattern("departures:*")
        await self.cache.delete_cached(keys.VEHICLES)
        return deleted
