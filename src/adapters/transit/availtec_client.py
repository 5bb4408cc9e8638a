from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx

from src.app.ports.output import ITransitProvider
from src.domain.exceptions import RouteNotFound, UpstreamPayloadError, UpstreamUnavailable
from src.domain.models import (
    Departure,
    GeoPoint,
    RouteDetails,
    RouteDirection,
    RouteTrace,
    Stop,
    StopDepartures,
    TransitRoute,
    TripRef,
    Vehicle,
)

from .kml import parse_route_trace
from .payloads import (
    Err,
    RawRouteDetails,
    RawStop,
    RawStopDepartureInfo,
    RawVehicle,
    parse_provider_time,
    validate_departures,
    validate_route_details,
    validate_routes,
    validate_stops,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://emta.availtec.com/InfoPoint"


def _stop_from_raw(raw: RawStop, *, sequence: int = 0) -> Stop:
    return Stop(
        id=str(raw.stop_id),
        name=raw.name,
        location=GeoPoint(lat=raw.latitude, lon=raw.longitude),
        sequence=sequence,
        description=raw.description,
        is_time_point=raw.is_time_point,
    )


def _vehicle_from_raw(raw: RawVehicle, *, route_id: str) -> Vehicle:
    return Vehicle(
        vehicle_id=str(raw.vehicle_id),
        lat=raw.latitude,
        lon=raw.longitude,
        route_id=str(raw.route_id) if raw.route_id is not None else route_id,
        block_id=str(raw.block_farebox_id) if raw.block_farebox_id is not None else None,
        name=raw.name,
        heading=raw.heading,
        speed=raw.speed,
        occupancy=raw.occupancy,
        destination=raw.destination,
        direction=raw.direction,
        last_stop=raw.last_stop,
        display_status=raw.display_status,
        last_updated=parse_provider_time(raw.last_updated),
    )


def _details_from_raw(raw: RawRouteDetails) -> RouteDetails:
    route_id = str(raw.route_id)
    return RouteDetails(
        route=TransitRoute(
            id=route_id,
            short_name=raw.short_name,
            long_name=raw.long_name or "",
            description=raw.description or "",
            color=raw.color or "",
        ),
        stops=tuple(
            _stop_from_raw(s, sequence=i) for i, s in enumerate(raw.stops or ())
        ),
        vehicles=tuple(
            _vehicle_from_raw(v, route_id=route_id) for v in raw.vehicles or ()
        ),
        directions=tuple(
            RouteDirection(code=d.dir, description=d.description)
            for d in raw.directions or ()
        ),
    )


def _stop_departures_from_raw(raw: RawStopDepartureInfo) -> StopDepartures:
    stop_id = str(raw.stop_id)
    departures: list[Departure] = []
    for rd in raw.route_directions:
        for d in rd.departures:
            departures.append(
                Departure(
                    stop_id=stop_id,
                    route_id=rd.route_id,
                    direction=rd.direction,
                    direction_code=rd.direction_code,
                    trip=TripRef(
                        trip_id=str(d.trip.trip_id),
                        block_id=(
                            str(d.trip.block_farebox_id)
                            if d.trip.block_farebox_id is not None
                            else None
                        ),
                        direction=d.trip.trip_direction,
                        gtfs_trip_id=d.trip.gtfs_trip_id,
                        status_label=d.trip.status_label,
                    ),
                    scheduled_raw=d.sdt,
                    estimated_raw=d.edt,
                    scheduled_local=d.sdt_local,
                    estimated_local=d.edt_local,
                    scheduled_at=parse_provider_time(d.sdt),
                    estimated_at=parse_provider_time(d.edt),
                    is_completed=d.is_completed,
                    is_last_stop_on_trip=d.is_last_stop_on_trip,
                    stop_status_label=d.stop_status_label,
                )
            )
    return StopDepartures(
        stop_id=stop_id, last_updated=raw.last_updated, departures=tuple(departures)
    )


@dataclass(slots=True)
class AvailtecTransitProvider(ITransitProvider):
    """Reads routes, stops, departures and vehicles from an InfoPoint REST API.

    Env vars:
      - TRANSIT_API_BASE_URL (default: the EMTA InfoPoint instance)
      - TRANSIT_API_TIMEOUT_S (default 10)
    """

    base_url: str | None = None
    timeout_s: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.base_url is None:
            self.base_url = os.getenv("TRANSIT_API_BASE_URL", DEFAULT_BASE_URL)
        self.base_url = self.base_url.rstrip("/")
        if os.getenv("TRANSIT_API_TIMEOUT_S"):
            self.timeout_s = float(os.environ["TRANSIT_API_TIMEOUT_S"])

    async def _get(self, path: str) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, transport=self.transport
            ) as client:
                resp = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"GET {url} failed: {exc}") from exc
        return resp

    async def _get_json(self, path: str) -> Any:
        resp = await self._get(path)
        if resp.status_code >= 400:
            raise UpstreamUnavailable(
                f"GET {path} failed with status {resp.status_code}"
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamPayloadError(f"GET {path} returned invalid JSON") from exc

    async def list_routes(self) -> tuple[TransitRoute, ...]:
        result = validate_routes(await self._get_json("/rest/Routes/GetVisibleRoutes"))
        if isinstance(result, Err):
            raise UpstreamPayloadError(f"Unexpected routes payload: {result.error}")
        return tuple(
            TransitRoute(
                id=str(r.route_id),
                short_name=r.short_name,
                long_name=r.long_name or "",
                description=r.description or "",
                color=r.color or "",
                text_color=r.text_color or "",
                is_visible=r.is_visible,
            )
            for r in result.value
        )

    async def get_route_details(self, route_id: str) -> RouteDetails:
        path = f"/rest/RouteDetails/Get/{route_id}"
        resp = await self._get(path)
        if resp.status_code == 404:
            raise RouteNotFound(route_id)
        if resp.status_code >= 400:
            raise UpstreamUnavailable(
                f"GET {path} failed with status {resp.status_code}"
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamPayloadError(f"GET {path} returned invalid JSON") from exc
        if data is None:
            raise RouteNotFound(route_id)

        result = validate_route_details(data)
        if isinstance(result, Err):
            raise UpstreamPayloadError(
                f"Unexpected route details payload for {route_id}: {result.error}"
            )
        return _details_from_raw(result.value)

    async def list_stop_departures(self) -> tuple[StopDepartures, ...]:
        result = validate_departures(
            await self._get_json("/rest/stopdepartures/getallstopdepartures")
        )
        if isinstance(result, Err):
            raise UpstreamPayloadError(f"Unexpected departures payload: {result.error}")
        return tuple(_stop_departures_from_raw(info) for info in result.value)

    async def list_stops(self) -> tuple[Stop, ...]:
        result = validate_stops(await self._get_json("/rest/stops/getallstops"))
        if isinstance(result, Err):
            raise UpstreamPayloadError(f"Unexpected stops payload: {result.error}")
        return tuple(_stop_from_raw(s) for s in result.value)

    async def get_route_trace(self, route_id: str) -> RouteTrace:
        path = f"/Resources/Traces/Route{route_id}.kml"
        resp = await self._get(path)
        if resp.status_code >= 400:
            raise UpstreamUnavailable(
                f"GET {path} failed with status {resp.status_code}"
            )
        return parse_route_trace(resp.text)
