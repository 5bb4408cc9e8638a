from .cache import CacheStoreError
from .routing import NoNearbyStops, PlanningError, PlanningUnavailable
from .transit import NotFound, RouteNotFound, UpstreamUnavailable
from .validation import InvalidPlanRequest, UpstreamPayloadError, ValidationFailure

__all__ = [
    "CacheStoreError",
    "InvalidPlanRequest",
    "NoNearbyStops",
    "NotFound",
    "PlanningError",
    "PlanningUnavailable",
    "RouteNotFound",
    "UpstreamPayloadError",
    "UpstreamUnavailable",
    "ValidationFailure",
]
