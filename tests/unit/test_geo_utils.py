from __future__ import annotations

import pytest

from src.domain.algorithms.geo_utils import (
    haversine_distance_m,
    initial_bearing_deg,
    polyline_distance_m,
)
from src.domain.models.geo import GeoPoint


def test_haversine_zero_for_identical_points() -> None:
    p = GeoPoint(lat=28.1, lon=-15.4)
    assert haversine_distance_m(p, p) == 0.0


def test_haversine_is_symmetric_and_reasonable_scale() -> None:
    # Rough sanity check: 1 degree of latitude is about 111km.
    a = GeoPoint(lat=0.0, lon=0.0)
    b = GeoPoint(lat=1.0, lon=0.0)

    d1 = haversine_distance_m(a, b)
    d2 = haversine_distance_m(b, a)

    assert abs(d1 - d2) < 1e-6
    assert 100_000.0 < d1 < 120_000.0


def test_initial_bearing_cardinal_directions() -> None:
    origin = GeoPoint(lat=0.0, lon=0.0)

    assert initial_bearing_deg(origin, GeoPoint(lat=1.0, lon=0.0)) == pytest.approx(0.0)
    assert initial_bearing_deg(origin, GeoPoint(lat=0.0, lon=1.0)) == pytest.approx(90.0)
    assert initial_bearing_deg(origin, GeoPoint(lat=-1.0, lon=0.0)) == pytest.approx(
        180.0
    )
    assert initial_bearing_deg(origin, GeoPoint(lat=0.0, lon=-1.0)) == pytest.approx(
        270.0
    )


def test_polyline_distance_sums_segments() -> None:
    a = GeoPoint(lat=0.0, lon=0.0)
    b = GeoPoint(lat=0.0, lon=0.01)
    c = GeoPoint(lat=0.01, lon=0.01)

    total = polyline_distance_m((a, b, c))

    assert total == pytest.approx(haversine_distance_m(a, b) + haversine_distance_m(b, c))
    assert polyline_distance_m((a,)) == 0.0
