from __future__ import annotations

from dataclasses import dataclass
from typing import Any

FROZEN_REASON_CODES: frozenset[str] = frozenset(
    {
        "graph_input_empty",
        "graph_polyline_malformed",
        "graph_has_no_intersections",
        "endpoint_unresolved",
        "endpoints_coincide",
        "route_planning_failed",
    }
)


@dataclass
class RoutePlanningError(ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class GraphConstructionError(RoutePlanningError):
    """Road input could not be turned into a graph (parser contract violation)."""


class EndpointResolutionError(RoutePlanningError):
    """A query point could not be mapped onto a usable intersection."""


def normalize_reason_code(reason_code: str, *, default: str = "route_planning_failed") -> str:
    code = str(reason_code or "").strip()
    if code in FROZEN_REASON_CODES:
        return code
    return default
