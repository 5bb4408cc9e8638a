from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.adapters.persistence import LocalJsonSnapshotRepository
from src.domain.exceptions import ValidationFailure

SNAPSHOT = {
    "routes": [
        {
            "id": "1",
            "number": "1",
            "name": "Downtown Loop",
            "stops": [
                {"id": "B", "name": "Second", "latitude": 42.13, "longitude": -80.07, "sequence": 2},
                {"id": "A", "name": "First", "latitude": 42.12, "longitude": -80.08, "sequence": 1},
            ],
        },
        {
            "id": "2",
            "number": "2",
            "stops": [
                {"id": "A", "name": "First", "latitude": 42.12, "longitude": -80.08},
            ],
        },
    ]
}


def test_routes_and_ordered_stops(tmp_path: Path) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT), encoding="utf-8")
    repo = LocalJsonSnapshotRepository(path=path)

    assert [r.short_name for r in repo.list_routes()] == ["1", "2"]
    details = repo.get_route("1")
    assert details is not None
    assert [s.id for s in details.stops] == ["A", "B"]
    assert repo.get_route("nope") is None
    assert [s.id for s in repo.list_stops()] == ["A", "B"]


def test_missing_file_is_empty(tmp_path: Path) -> None:
    repo = LocalJsonSnapshotRepository(path=tmp_path / "absent.json")

    assert repo.list_routes() == ()
    assert repo.list_stops() == ()


def test_invalid_document_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"routes": [{"id": "1"}]}), encoding="utf-8")

    with pytest.raises(ValidationFailure):
        LocalJsonSnapshotRepository(path=path).list_routes()
