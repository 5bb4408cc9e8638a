from __future__ import annotations

# Cache keys. Prefixes double as invalidation patterns ("departures:*").
ROUTES = "routes:all"
STOPS = "stops:all"
DEPARTURES = "departures:all"
VEHICLES = "vehicles:all"


def route_details(route_id: str) -> str:
    return f"route:details:{route_id}"


def route_trace(route_id: str) -> str:
    return f"route:kml:{route_id}"


# TTLs in seconds.
ROUTES_TTL_S = 600
ROUTE_DETAILS_TTL_S = 300
STOPS_TTL_S = 300
DEPARTURES_TTL_S = 30
VEHICLES_TTL_S = 10
VEHICLES_JITTER_PERCENT = 20
ROUTE_TRACE_TTL_S = 3600
