from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .spatial import Location

EARTH_RADIUS_KM = 6367.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)
    a = (
        math.sin(dphi / 2.0) ** 2
        + (math.cos(phi1) * math.cos(phi2) * (math.sin(dlambda / 2.0) ** 2))
    )
    return 2.0 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(max(0.0, a))))


def distance(a: Location, b: Location) -> float:
    # Sorting the operands makes the result bit-for-bit symmetric.
    first, second = sorted((a, b), key=lambda loc: loc.key)
    return haversine_km(first.latitude, first.longitude, second.latitude, second.longitude)


def polyline_length_km(points: Sequence[Location]) -> float:
    total = 0.0
    for idx in range(1, len(points)):
        total += distance(points[idx - 1], points[idx])
    return total
