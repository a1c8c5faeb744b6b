from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .hazards import MAX_SEVERITY
from .logging_utils import log_event
from .models import RouteCriteria
from .spatial import Graph, Road

ROAD_MAX_SPEED = 65
# Applied to every road when no criterion is selected: routes then minimise road count.
NEUTRAL_COST = 1.0


def speed_factor(speed: int) -> float:
    if speed < ROAD_MAX_SPEED:
        return max(0.0, float(speed)) / float(ROAD_MAX_SPEED)
    return 1.0


def safety_factor(severity: float) -> float:
    return float(severity) / MAX_SEVERITY


def distance_factor(length_km: float, max_length_km: float) -> float:
    if max_length_km <= 0.0:
        return 1.0
    return float(length_km) / float(max_length_km)


def assign_cost(road: Road, criteria: RouteCriteria, *, max_length_km: float) -> float:
    """Unit-less cost in ``[0, 1]`` for one road under the requested criteria.

    Safety alone is the plain severity ratio. Any other combination starts at 1
    and multiplies in each requested factor, so the blend never leaves the unit
    interval.
    """
    if criteria.safety_only:
        return safety_factor(road.severity)
    if not criteria.any_selected:
        return NEUTRAL_COST

    cost = 1.0
    if criteria.fastest:
        cost *= speed_factor(road.speed)
    if criteria.safest:
        cost *= safety_factor(road.severity)
    if criteria.shortest:
        cost *= distance_factor(road.length_km, max_length_km)
    return min(1.0, max(0.0, cost))


@dataclass(frozen=True)
class CostTable:
    """Per-query road costs, indexed by road index. Lives beside the graph, never on it."""

    costs: tuple[float, ...]
    criteria: RouteCriteria

    def __getitem__(self, road_index: int) -> float:
        return self.costs[road_index]

    def __len__(self) -> int:
        return len(self.costs)

    def __iter__(self) -> Iterator[float]:
        return iter(self.costs)

    @classmethod
    def from_costs(cls, costs: Sequence[float], criteria: RouteCriteria | None = None) -> CostTable:
        return cls(costs=tuple(float(c) for c in costs), criteria=criteria or RouteCriteria())


def build_cost_table(graph: Graph, criteria: RouteCriteria) -> CostTable:
    costs = tuple(assign_cost(road, criteria, max_length_km=graph.max_length_km) for road in graph.roads)
    log_event(
        "costs_assigned",
        stage="costs",
        roads=len(costs),
        safest=criteria.safest,
        shortest=criteria.shortest,
        fastest=criteria.fastest,
    )
    return CostTable(costs=costs, criteria=criteria)
