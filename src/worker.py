from __future__ import annotations

import asyncio
import logging
import os

from src.adapters.api.dependencies import (
    get_cache_service,
    get_runtime_config,
    get_transit_data_service,
)
from src.app.services.transit_data_service import TransitDataService

logger = logging.getLogger(__name__)


async def warm_once(service: TransitDataService) -> int:
    """Refresh routes, stops and every visible route's details.

    Returns the number of route details that made it into the cache.
    """

    routes = await service.list_routes()
    await service.list_stops()
    warmed = await service.prefetch_route_details(r.id for r in routes if r.is_visible)
    logger.info("Cache warm: %d/%d routes", warmed, len(routes))
    return warmed


async def run() -> None:
    """Env vars:
    - WORKER_LOOP (default on; off runs a single pass)
    - WORKER_INTERVAL_S (default 300)
    """

    loop = os.getenv("WORKER_LOOP", "1").strip().lower() not in {"0", "false", "no"}
    interval_s = float(os.getenv("WORKER_INTERVAL_S", "300"))

    cache = get_cache_service()
    service = get_transit_data_service()
    await cache.start()
    try:
        while True:
            await warm_once(service)
            if not loop:
                return
            await asyncio.sleep(interval_s)
    finally:
        await cache.aclose(timeout_s=get_runtime_config().cache_shutdown_timeout_s)


def main() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    asyncio.run(run())


if __name__ == "__main__":
    main()
