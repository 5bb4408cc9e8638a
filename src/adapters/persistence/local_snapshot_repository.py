from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from src.app.ports.output import ITransitSnapshotRepository
from src.domain.models import RouteDetails, Stop, TransitRoute

from .snapshot_format import TransitSnapshot, parse_snapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LocalJsonSnapshotRepository(ITransitSnapshotRepository):
    """Loads the routes/stops mirror from a JSON file.

    Env vars:
      - TRANSIT_SNAPSHOT_PATH (default: data/transit_snapshot.json)

    A missing file is an empty snapshot. The file is read once per instance.
    """

    path: str | Path | None = None
    _snapshot: TransitSnapshot | None = field(default=None, init=False, repr=False)

    def _path(self) -> Path:
        value = self.path or os.getenv("TRANSIT_SNAPSHOT_PATH") or "data/transit_snapshot.json"
        return Path(value)

    def _load(self) -> TransitSnapshot:
        if self._snapshot is not None:
            return self._snapshot

        path = self._path()
        if not path.exists():
            logger.warning("No transit snapshot at %s", path)
            self._snapshot = TransitSnapshot(routes_by_id={}, stops=())
            return self._snapshot

        with path.open("r", encoding="utf-8") as fp:
            self._snapshot = parse_snapshot(json.load(fp))
        return self._snapshot

    def list_routes(self) -> tuple[TransitRoute, ...]:
        return tuple(d.route for d in self._load().routes_by_id.values())

    def get_route(self, route_id: str) -> RouteDetails | None:
        return self._load().routes_by_id.get(route_id)

    def list_stops(self) -> tuple[Stop, ...]:
        return self._load().stops
