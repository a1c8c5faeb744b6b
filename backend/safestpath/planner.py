from __future__ import annotations

import logging
from dataclasses import dataclass

from .cost_model import build_cost_table
from .errors import EndpointResolutionError
from .graph_builder import build_graph
from .logging_utils import log_event
from .models import PlannedRoute, PointInput, RouteCriteria, RoutePlanRequest, RoutePlanResponse
from .route_finder import RouteFinder
from .settings import settings
from .spatial import Graph, Intersection, Location, Route


@dataclass(frozen=True)
class PlanResult:
    start: Intersection
    end: Intersection
    routes: tuple[Route, ...]


def _as_location(point: Location | PointInput) -> Location:
    if isinstance(point, PointInput):
        return point.to_location()
    return point


def resolve_endpoint(
    graph: Graph,
    point: Location,
    *,
    label: str,
    max_distance_km: float | None = None,
) -> Intersection:
    """Map a query point onto the intersection at that exact spot, else the nearest one."""
    exact = graph.intersection_at(point)
    if exact is not None:
        return exact
    nearest = graph.nearest_intersection(point)
    if nearest is None:
        raise EndpointResolutionError(
            reason_code="graph_has_no_intersections",
            message="the road network has no junctions to route between",
            details={"endpoint": label},
        )
    snap_km = nearest.location.distance_to(point)
    if max_distance_km is not None and snap_km > max_distance_km:
        raise EndpointResolutionError(
            reason_code="endpoint_unresolved",
            message=f"{label} point is {snap_km:.3f} km from the nearest junction",
            details={"endpoint": label, "snap_km": snap_km, "max_distance_km": max_distance_km},
        )
    return nearest


def plan_on_graph(
    graph: Graph,
    start: Location | PointInput,
    end: Location | PointInput,
    criteria: RouteCriteria,
    *,
    route_count: int | None = None,
) -> PlanResult:
    """Run one independent route query against an already-built graph.

    The graph is only read, so any number of queries may share it.
    """
    max_km = settings.snap_max_distance_km
    source = resolve_endpoint(graph, _as_location(start), label="start", max_distance_km=max_km)
    target = resolve_endpoint(graph, _as_location(end), label="end", max_distance_km=max_km)
    if source == target:
        log_event(
            "plan_rejected",
            stage="plan",
            level=logging.WARNING,
            reason_code="endpoints_coincide",
            intersection=source.index,
        )
        raise EndpointResolutionError(
            reason_code="endpoints_coincide",
            message="start and end resolve to the same map location",
            details={"intersection": str(source.location)},
        )
    if not criteria.any_selected:
        log_event("no_route_criteria", stage="plan", level=logging.WARNING, policy="neutral_cost")

    costs = build_cost_table(graph, criteria)
    count = route_count if route_count is not None else settings.route_count
    routes = RouteFinder(graph, costs, source, target, route_count=count).find_routes()
    return PlanResult(start=source, end=target, routes=tuple(routes))


def plan_routes(request: RoutePlanRequest) -> RoutePlanResponse:
    graph = build_graph(request.roads, request.hazards)
    result = plan_on_graph(
        graph,
        request.start,
        request.end,
        request.criteria,
        route_count=request.route_count,
    )
    log_event(
        "plan_complete",
        stage="plan",
        routes=len(result.routes),
        start=result.start.index,
        end=result.end.index,
    )
    return RoutePlanResponse(
        routes=[
            PlannedRoute(
                coordinates=route.coordinates(),
                road_ids=list(route.road_ids),
                cost=route.cost,
                polyline=route.polyline_coordinates(),
            )
            for route in result.routes
        ],
        start=result.start.location.as_tuple(),
        end=result.end.location.as_tuple(),
        intersection_count=len(graph.intersections),
        road_count=len(graph.roads),
    )
