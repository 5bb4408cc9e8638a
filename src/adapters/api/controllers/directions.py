from __future__ import annotations

from fastapi import APIRouter, Depends

from src.adapters.api.dependencies import get_itinerary_planner
from src.adapters.api.schemas.directions import (
    CoordinateSchema,
    DirectionsRequestSchema,
    DirectionsResponseSchema,
    PlanItinerarySchema,
    PlanLegSchema,
)
from src.app.services.itinerary_planner import (
    DEFAULT_MAX_WALK_M,
    ItineraryPlanner,
    PlanOptions,
)
from src.domain.exceptions import InvalidPlanRequest
from src.domain.models import GeoPoint, Itinerary, Leg, PlanResult

router = APIRouter(tags=["directions"])


def _coordinate(p: GeoPoint) -> CoordinateSchema:
    return CoordinateSchema(latitude=p.lat, longitude=p.lon)


def _point(c: CoordinateSchema) -> GeoPoint:
    try:
        return GeoPoint(lat=c.latitude, lon=c.longitude)
    except ValueError as exc:
        raise InvalidPlanRequest(str(exc)) from exc


def _leg_to_schema(leg: Leg) -> PlanLegSchema:
    return PlanLegSchema(
        type=leg.mode.value,
        distance_meters=leg.distance_m,
        duration_minutes=leg.duration_min,
        start=_coordinate(leg.start),
        end=_coordinate(leg.end),
        route_id=leg.route_id,
        route_name=leg.route_name,
        route_number=leg.route_number,
        start_stop_id=leg.start_stop_id,
        start_stop_name=leg.start_stop_name,
        end_stop_id=leg.end_stop_id,
        end_stop_name=leg.end_stop_name,
        stop_count=leg.stop_count,
        departs_at=leg.depart_at,
    )


def _itinerary_to_schema(it: Itinerary) -> PlanItinerarySchema:
    transit = it.dominant_transit_leg
    return PlanItinerarySchema(
        legs=[_leg_to_schema(leg) for leg in it.legs],
        total_distance_meters=it.total_distance_m,
        total_duration_minutes=it.total_duration_min,
        route_id=it.route_id,
        route_name=it.route_name,
        route_number=it.route_number,
        start_stop_id=transit.start_stop_id if transit else None,
        end_stop_id=transit.end_stop_id if transit else None,
    )


def plan_to_schema(result: PlanResult) -> DirectionsResponseSchema:
    return DirectionsResponseSchema(
        generated_at=result.generated_at,
        itineraries=[_itinerary_to_schema(it) for it in result.itineraries],
    )


@router.post(
    "/directions",
    response_model=DirectionsResponseSchema,
    response_model_by_alias=True,
)
async def plan_directions(
    req: DirectionsRequestSchema,
    planner: ItineraryPlanner = Depends(get_itinerary_planner),
) -> DirectionsResponseSchema:
    options = PlanOptions(
        max_walking_distance_m=(
            req.max_walking_distance_meters
            if req.max_walking_distance_meters is not None
            else DEFAULT_MAX_WALK_M
        ),
        limit=req.limit,
        departure_time=req.departure_time,
    )
    result = await planner.plan(
        _point(req.origin), _point(req.destination), options=options
    )
    return plan_to_schema(result)
