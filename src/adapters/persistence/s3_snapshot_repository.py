from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass, field

from src.adapters.aws import s3_client
from src.app.ports.output import ITransitSnapshotRepository
from src.domain.models import RouteDetails, Stop, TransitRoute

from .snapshot_format import TransitSnapshot, parse_snapshot


@dataclass(slots=True)
class S3SnapshotRepository(ITransitSnapshotRepository):
    """Reads the routes/stops mirror document from S3.

    Env vars:
      - TRANSIT_SNAPSHOT_BUCKET (required)
      - TRANSIT_SNAPSHOT_KEY (default: snapshots/transit.json)
      - ENDPOINT_URL (preferred for LocalStack)

    The document is re-read at most every `refresh_s` seconds.
    """

    bucket: str | None = None
    key: str | None = None
    refresh_s: float = 300.0

    _snapshot: TransitSnapshot | None = field(default=None, init=False, repr=False)
    _loaded_at_monotonic: float = field(default=0.0, init=False, repr=False)

    def _bucket(self) -> str:
        value = self.bucket or os.getenv("TRANSIT_SNAPSHOT_BUCKET")
        if not value:
            raise RuntimeError("Missing TRANSIT_SNAPSHOT_BUCKET")
        return value

    def _key(self) -> str:
        return (
            self.key or os.getenv("TRANSIT_SNAPSHOT_KEY") or "snapshots/transit.json"
        ).lstrip("/")

    def _load(self) -> TransitSnapshot:
        now = time.monotonic()
        if self._snapshot is not None and now - self._loaded_at_monotonic < self.refresh_s:
            return self._snapshot

        s3 = s3_client()
        obj = s3.get_object(Bucket=self._bucket(), Key=self._key())
        self._snapshot = parse_snapshot(json.loads(obj["Body"].read()))
        self._loaded_at_monotonic = now
        return self._snapshot

    def list_routes(self) -> tuple[TransitRoute, ...]:
        return tuple(d.route for d in self._load().routes_by_id.values())

    def get_route(self, route_id: str) -> RouteDetails | None:
        return self._load().routes_by_id.get(route_id)

    def list_stops(self) -> tuple[Stop, ...]:
        return self._load().stops
