from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from shapely import make_valid
from shapely.geometry import Point, Polygon
from shapely.prepared import PreparedGeometry, prep

from .spatial import Location

MAX_SEVERITY = 10.0
# A road touching no hazard keeps severity 1, never 0.
NO_HAZARD_SEVERITY = 1.0


@dataclass(frozen=True)
class Hazard:
    """A hazard ("event") area with a severity between 0 and 10."""

    name: str
    severity: float
    boundary: tuple[Location, ...]
    _area: PreparedGeometry = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Shapely works in (x, y) == (lon, lat).
        polygon = Polygon([(loc.longitude, loc.latitude) for loc in self.boundary])
        if not polygon.is_valid:
            polygon = make_valid(polygon)
        object.__setattr__(self, "_area", prep(polygon))

    def contains(self, location: Location) -> bool:
        return bool(self._area.covers(Point(location.longitude, location.latitude)))

    def touches_road(self, points: Iterable[Location]) -> bool:
        return any(self.contains(loc) for loc in points)


def severity_of(points: Sequence[Location], hazards: Iterable[Hazard]) -> float:
    """Highest severity of any hazard containing at least one of ``points``."""
    highest = NO_HAZARD_SEVERITY
    for hazard in hazards:
        # Only test containment when the hazard could raise the result.
        if hazard.severity > highest and hazard.touches_road(points):
            highest = min(MAX_SEVERITY, float(hazard.severity))
    return highest
