from __future__ import annotations

import logging
from functools import lru_cache

from src.adapters.cache import InMemoryCacheStore, RedisCacheStore
from src.adapters.config import AppRuntimeConfig
from src.adapters.persistence import LocalJsonSnapshotRepository, S3SnapshotRepository
from src.adapters.transit import AvailtecTransitProvider
from src.app.ports.output import ICacheStore, ITransitSnapshotRepository
from src.app.services.cache_service import CacheService
from src.app.services.fake_vehicles import FakeVehicleGenerator
from src.app.services.itinerary_planner import ItineraryPlanner
from src.app.services.transit_data_service import TransitDataService

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_runtime_config() -> AppRuntimeConfig:
    return AppRuntimeConfig.from_env()


@lru_cache(maxsize=1)
def get_cache_service() -> CacheService:
    cfg = get_runtime_config()

    store: ICacheStore | None = None
    if cfg.cache_backend == "redis":
        store = RedisCacheStore()
    elif cfg.cache_backend == "memory":
        store = InMemoryCacheStore()
    else:
        logger.warning("Caching disabled (CACHE_BACKEND=none)")

    return CacheService(store=store, max_value_bytes=cfg.cache_max_value_bytes)


def get_snapshot_repository() -> ITransitSnapshotRepository:
    cfg = get_runtime_config()
    if cfg.snapshot_bucket:
        return S3SnapshotRepository(bucket=cfg.snapshot_bucket)
    return LocalJsonSnapshotRepository()


@lru_cache(maxsize=1)
def get_transit_data_service() -> TransitDataService:
    cfg = get_runtime_config()
    if cfg.enable_fake_buses and cfg.is_production:
        logger.warning("ENABLE_FAKE_BUSES ignored in production")

    return TransitDataService(
        provider=AvailtecTransitProvider(),
        cache=get_cache_service(),
        snapshot_repository=get_snapshot_repository(),
        fake_vehicles=FakeVehicleGenerator() if cfg.fake_buses_enabled else None,
    )


def get_itinerary_planner() -> ItineraryPlanner:
    return ItineraryPlanner(transit_data=get_transit_data_service())
