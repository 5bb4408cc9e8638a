from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.app.ports.output import IPlaceSearchProvider, Place
from src.domain.models import GeoPoint

from .latest_request import LatestRequestGate

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PlaceSearchService:
    """Type-ahead place search where only the newest query's results count.

    `search()` returns `None` when a newer search started while this one was
    waiting on the provider.
    """

    provider: IPlaceSearchProvider
    min_query_length: int = 1
    gate: LatestRequestGate = field(default_factory=LatestRequestGate)

    async def search(
        self, query: str, *, proximity: GeoPoint | None = None
    ) -> tuple[Place, ...] | None:
        ticket = self.gate.begin()
        query = query.strip()
        if len(query) < self.min_query_length:
            return ()

        results = await self.provider.search(query, proximity=proximity)

        if not self.gate.is_latest(ticket):
            logger.debug("Discarding superseded place search %r", query)
            return None
        return results
