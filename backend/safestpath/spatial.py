from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from .geo import distance

LocationKey = tuple[float, float, float]


class Location(BaseModel):
    """A WGS-84 position in decimal degrees, altitude in metres.

    Equality is exact field-by-field float comparison; there is no tolerance.
    Out-of-range coordinates raise ``pydantic.ValidationError`` on construction.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: float = 0.0

    @property
    def key(self) -> LocationKey:
        return (self.latitude, self.longitude, self.altitude)

    def distance_to(self, other: Location) -> float:
        return distance(self, other)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.latitude, self.longitude, self.altitude)

    def __str__(self) -> str:
        return f"[{self.latitude},{self.longitude},{self.altitude}]"


@dataclass(frozen=True)
class Road:
    index: int
    road_id: str
    name: str
    points: tuple[Location, ...]
    speed: int
    severity: float
    length_km: float
    intersections: tuple[int, ...] = ()

    @property
    def is_dead_end(self) -> bool:
        return len(self.intersections) < 2

    def other_end(self, intersection_index: int) -> int | None:
        if self.is_dead_end:
            return None
        first, second = self.intersections
        if intersection_index == first:
            return second
        if intersection_index == second:
            return first
        return None


@dataclass(frozen=True)
class Intersection:
    index: int
    location: Location
    roads: tuple[int, ...] = ()

    @property
    def degree(self) -> int:
        return len(self.roads)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Intersection):
            return NotImplemented
        return self.location.key == other.location.key

    def __hash__(self) -> int:
        return hash(self.location.key)


@dataclass(frozen=True)
class Graph:
    """Roads and junctions of one planning session. Never mutated after construction."""

    roads: tuple[Road, ...]
    intersections: tuple[Intersection, ...]
    max_length_km: float
    adjacency: Mapping[int, tuple[tuple[int, int], ...]] = field(default_factory=dict)
    index_by_key: Mapping[LocationKey, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Lookups are read-only views whichever mapping the caller handed in.
        for name in ("adjacency", "index_by_key"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def intersection_at(self, location: Location) -> Intersection | None:
        idx = self.index_by_key.get(location.key)
        if idx is None:
            return None
        return self.intersections[idx]

    def nearest_intersection(self, location: Location) -> Intersection | None:
        best: Intersection | None = None
        best_km = float("inf")
        for intersection in self.intersections:
            d_km = intersection.location.distance_to(location)
            if d_km < best_km:
                best_km = d_km
                best = intersection
        return best

    def neighbours(self, intersection_index: int) -> tuple[tuple[int, int], ...]:
        """Return ``(road index, neighbour index)`` pairs over traversable roads."""
        return self.adjacency.get(intersection_index, ())

    def roads_between(self, a: int, b: int) -> tuple[Road, ...]:
        return tuple(self.roads[road_idx] for road_idx, other in self.neighbours(a) if other == b)

    @property
    def dead_end_count(self) -> int:
        return sum(1 for road in self.roads if road.is_dead_end)


@dataclass(frozen=True)
class Route:
    locations: tuple[Location, ...]
    road_ids: tuple[str, ...]
    cost: float
    polyline: tuple[Location, ...] = ()

    def coordinates(self) -> list[tuple[float, float, float]]:
        return [loc.as_tuple() for loc in self.locations]

    def polyline_coordinates(self) -> list[tuple[float, float, float]]:
        return [loc.as_tuple() for loc in self.polyline]
