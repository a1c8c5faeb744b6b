from __future__ import annotations

import math

import pytest

from safestpath.geo import EARTH_RADIUS_KM, distance, haversine_km, polyline_length_km
from safestpath.spatial import Location


def _loc(lat: float, lon: float, alt: float = 0.0) -> Location:
    return Location(latitude=lat, longitude=lon, altitude=alt)


def test_haversine_one_degree_of_latitude() -> None:
    expected = EARTH_RADIUS_KM * math.pi / 180.0
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-12)


def test_distance_is_symmetric_and_zero_on_self() -> None:
    a = _loc(39.7071, -75.1190)
    b = _loc(39.9526, -75.1652)

    assert distance(a, b) == distance(b, a)
    assert distance(a, a) == 0.0
    assert a.distance_to(b) == b.distance_to(a)
    assert 25.0 < distance(a, b) < 30.0


def test_distance_ignores_altitude() -> None:
    assert distance(_loc(10.0, 10.0, 0.0), _loc(10.0, 11.0, 500.0)) == distance(
        _loc(10.0, 10.0), _loc(10.0, 11.0)
    )


def test_polyline_length_sums_consecutive_segments() -> None:
    points = [_loc(0.0, 0.0), _loc(0.0, 1.0), _loc(1.0, 1.0)]
    assert polyline_length_km(points) == pytest.approx(
        distance(points[0], points[1]) + distance(points[1], points[2])
    )
    assert polyline_length_km(points[:1]) == 0.0
    assert polyline_length_km([]) == 0.0
