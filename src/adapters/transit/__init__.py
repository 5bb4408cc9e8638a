from .availtec_client import AvailtecTransitProvider
from .kml import parse_route_trace

__all__ = [
    "AvailtecTransitProvider",
    "parse_route_trace",
]
