from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from src.adapters.api.dependencies import get_transit_data_service
from src.adapters.api.schemas.transit import (
    DepartureSchema,
    GeoPointSchema,
    PrefetchRequestSchema,
    PrefetchResponseSchema,
    RouteDetailsSchema,
    RouteDirectionSchema,
    RouteTraceSchema,
    StopDeparturesSchema,
    StopSchema,
    TracePathSchema,
    TransitRouteSchema,
    VehicleSchema,
    VehiclesResponseSchema,
)
from src.app.services.transit_data_service import TransitDataService
from src.domain.models import Stop, TransitRoute, Vehicle

router = APIRouter(prefix="/transit", tags=["transit"])


def _route_to_schema(r: TransitRoute) -> TransitRouteSchema:
    return TransitRouteSchema(
        route_id=r.id,
        short_name=r.short_name,
        long_name=r.long_name,
        description=r.description,
        color=r.color,
        text_color=r.text_color,
    )


def _stop_to_schema(s: Stop) -> StopSchema:
    return StopSchema(
        stop_id=s.id,
        name=s.name,
        location=GeoPointSchema(lat=s.location.lat, lon=s.location.lon),
        sequence=s.sequence,
        description=s.description,
        is_time_point=s.is_time_point,
    )


def _vehicle_to_schema(v: Vehicle) -> VehicleSchema:
    return VehicleSchema(
        vehicle_id=v.vehicle_id,
        route_id=v.route_id,
        lat=v.lat,
        lon=v.lon,
        heading=v.heading,
        speed=v.speed,
        name=v.name,
        destination=v.destination,
        direction=v.direction,
        occupancy=v.occupancy,
        last_stop=v.last_stop,
        display_status=v.display_status,
        last_updated=v.last_updated,
    )


@router.get("/routes", response_model=list[TransitRouteSchema])
async def list_routes(
    service: TransitDataService = Depends(get_transit_data_service),
) -> list[TransitRouteSchema]:
    routes = await service.list_routes()
    return [_route_to_schema(r) for r in routes if r.is_visible]


@router.get("/routes/{route_id}", response_model=RouteDetailsSchema)
async def get_route_details(
    route_id: str,
    service: TransitDataService = Depends(get_transit_data_service),
) -> RouteDetailsSchema:
    details = await service.get_route_details(route_id)
    return RouteDetailsSchema(
        route=_route_to_schema(details.route),
        stops=[_stop_to_schema(s) for s in details.stops],
        vehicles=[_vehicle_to_schema(v) for v in details.vehicles],
        directions=[
            RouteDirectionSchema(code=d.code, description=d.description)
            for d in details.directions
        ],
    )


@router.get("/routes/{route_id}/trace", response_model=RouteTraceSchema)
async def get_route_trace(
    route_id: str,
    service: TransitDataService = Depends(get_transit_data_service),
) -> RouteTraceSchema:
    trace = await service.get_route_trace(route_id)
    return RouteTraceSchema(
        route_id=route_id,
        name=trace.name,
        paths=[
            TracePathSchema(
                name=p.name,
                points=[GeoPointSchema(lat=pt.lat, lon=pt.lon) for pt in p.points],
            )
            for p in trace.paths
        ],
    )


@router.post("/routes/prefetch", response_model=PrefetchResponseSchema)
async def prefetch_routes(
    req: PrefetchRequestSchema,
    service: TransitDataService = Depends(get_transit_data_service),
) -> PrefetchResponseSchema:
    route_ids = list(dict.fromkeys(req.route_ids))
    warmed = await service.prefetch_route_details(route_ids)
    return PrefetchResponseSchema(requested=len(route_ids), warmed=warmed)


@router.get("/stops", response_model=list[StopSchema])
async def list_stops(
    service: TransitDataService = Depends(get_transit_data_service),
) -> list[StopSchema]:
    return [_stop_to_schema(s) for s in await service.list_stops()]


@router.get("/departures", response_model=list[StopDeparturesSchema])
async def list_departures(
    stop_id: str | None = Query(default=None),
    service: TransitDataService = Depends(get_transit_data_service),
) -> list[StopDeparturesSchema]:
    boards = await service.list_stop_departures(stop_id=stop_id)
    return [
        StopDeparturesSchema(
            stop_id=b.stop_id,
            last_updated=b.last_updated,
            departures=[
                DepartureSchema(
                    route_id=d.route_id,
                    direction=d.direction,
                    trip_id=d.trip.trip_id,
                    scheduled=d.scheduled_raw,
                    estimated=d.estimated_raw,
                    scheduled_local=d.scheduled_local,
                    estimated_local=d.estimated_local,
                    departs_at=d.departs_at,
                    is_completed=d.is_completed,
                    is_cancelled=d.is_cancelled,
                    is_last_stop_on_trip=d.is_last_stop_on_trip,
                )
                for d in b.departures
            ],
        )
        for b in boards
    ]


@router.get("/vehicles", response_model=VehiclesResponseSchema)
async def list_vehicles(
    route_id: list[str] | None = Query(default=None),
    service: TransitDataService = Depends(get_transit_data_service),
) -> VehiclesResponseSchema:
    route_ids = set(route_id) if route_id else None
    vehicles = await service.list_vehicles(route_ids=route_ids)

    return VehiclesResponseSchema(
        fetched_at=datetime.now(timezone.utc),
        vehicles=[_vehicle_to_schema(v) for v in vehicles],
    )
