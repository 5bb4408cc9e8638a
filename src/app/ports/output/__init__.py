from .cache_store import ICacheStore
from .place_search_provider import IPlaceSearchProvider, Place
from .snapshot_repository import ITransitSnapshotRepository
from .transit_provider import ITransitProvider

__all__ = [
    "ICacheStore",
    "IPlaceSearchProvider",
    "ITransitProvider",
    "ITransitSnapshotRepository",
    "Place",
]
