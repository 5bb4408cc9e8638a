class PlanningError(Exception):
    """Base exception for itinerary planning failures."""


class PlanningUnavailable(PlanningError):
    """Raised when the transit data needed to plan cannot be loaded at all."""


class NoNearbyStops(PlanningError):
    """Raised when no stop lies within walking distance of an endpoint."""
