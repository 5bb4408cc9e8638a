from .geo import GeoPoint
from .itinerary import Itinerary, Leg, PlanResult, TravelMode
from .realtime import Vehicle
from .stop import Stop
from .transit import (
    Departure,
    RouteDetails,
    RouteDirection,
    RouteTrace,
    StopDepartures,
    TracePath,
    TracePoint,
    TransitRoute,
    TripRef,
)

__all__ = [
    "Departure",
    "GeoPoint",
    "Itinerary",
    "Leg",
    "PlanResult",
    "RouteDetails",
    "RouteDirection",
    "RouteTrace",
    "Stop",
    "StopDepartures",
    "TracePath",
    "TracePoint",
    "TransitRoute",
    "TravelMode",
    "TripRef",
    "Vehicle",
]
