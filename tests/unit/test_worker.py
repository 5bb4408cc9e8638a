from __future__ import annotations

import asyncio

from src.domain.models import TransitRoute
from src.worker import warm_once


class _FakeTransitData:
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def list_routes(self) -> tuple[TransitRoute, ...]:
        self.calls.append("routes")
        return (
            TransitRoute(id="1", short_name="1"),
            TransitRoute(id="2", short_name="2", is_visible=False),
            TransitRoute(id="3", short_name="3"),
        )

    async def list_stops(self):
        self.calls.append("stops")
        return ()

    async def prefetch_route_details(self, route_ids) -> int:
        ids = list(route_ids)
        self.calls.append("prefetch:" + ",".join(ids))
        return len(ids)


def test_warm_once_prefetches_visible_routes() -> None:
    data = _FakeTransitData()

    warmed = asyncio.run(warm_once(data))  # type: ignore[arg-type]

    assert warmed == 2
    assert data.calls == ["routes", "stops", "prefetch:1,3"]
