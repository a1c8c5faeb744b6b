from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .spatial import Location


class PointInput(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    alt: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def accept_coordinate_tuples(cls, value: object) -> object:
        # Parsers hand over bare (lat, lon[, alt]) tuples.
        if isinstance(value, (list, tuple)):
            if len(value) not in (2, 3):
                raise ValueError("coordinate must be (lat, lon) or (lat, lon, alt)")
            data = {"lat": value[0], "lon": value[1]}
            if len(value) == 3:
                data["alt"] = value[2]
            return data
        return value

    @field_validator("lat", "lon", "alt")
    @classmethod
    def finite(cls, v: float) -> float:
        if v != v or v in (float("inf"), float("-inf")):
            raise ValueError("coordinate must be finite")
        return v

    def to_location(self) -> Location:
        return Location(latitude=self.lat, longitude=self.lon, altitude=self.alt)


class RoadInput(BaseModel):
    """One road polyline as drawn, in order."""

    id: str
    points: list[PointInput]
    speed: int = Field(default=30, ge=0)


class HazardInput(BaseModel):
    name: str = ""
    severity: float = Field(..., ge=0, le=10)
    boundary: list[PointInput] = Field(..., min_length=3)


class RouteCriteria(BaseModel):
    """Which factors feed the road cost. Independent switches."""

    model_config = ConfigDict(frozen=True)

    safest: bool = False
    shortest: bool = False
    fastest: bool = False

    @model_validator(mode="before")
    @classmethod
    def accept_factor_aliases(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        data = dict(value)
        for alias, name in (("safety", "safest"), ("distance", "shortest"), ("speed", "fastest")):
            if name not in data and alias in data:
                data[name] = data.pop(alias)
        return data

    @property
    def any_selected(self) -> bool:
        return self.safest or self.shortest or self.fastest

    @property
    def safety_only(self) -> bool:
        return self.safest and not self.shortest and not self.fastest


class RoutePlanRequest(BaseModel):
    roads: list[RoadInput]
    hazards: list[HazardInput] = Field(default_factory=list)
    start: PointInput
    end: PointInput
    criteria: RouteCriteria = Field(default_factory=RouteCriteria)
    route_count: int | None = Field(default=None, ge=1, le=3)


class PlannedRoute(BaseModel):
    coordinates: list[tuple[float, float, float]]
    road_ids: list[str]
    cost: float
    polyline: list[tuple[float, float, float]] = Field(default_factory=list)


class RoutePlanResponse(BaseModel):
    routes: list[PlannedRoute]
    start: tuple[float, float, float]
    end: tuple[float, float, float]
    intersection_count: int
    road_count: int
