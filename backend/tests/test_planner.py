from __future__ import annotations

from typing import Any

import pytest

from safestpath.errors import EndpointResolutionError
from safestpath.graph_builder import build_graph
from safestpath.models import PointInput, RouteCriteria, RoutePlanRequest
from safestpath.planner import plan_on_graph, plan_routes, resolve_endpoint
from safestpath.settings import settings
from safestpath.spatial import Location

A, B, C, D, M = (0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.5, 0.5)


def _roads() -> list[dict[str, Any]]:
    return [
        {"id": "A-B", "points": [A, B], "speed": 30},
        {"id": "B-C", "points": [B, C], "speed": 30},
        {"id": "C-D", "points": [C, D], "speed": 30},
        {"id": "D-A", "points": [D, A], "speed": 30},
        {"id": "A-C", "points": [A, M, C], "speed": 30},
    ]


_CHECKPOINT = {
    "name": "checkpoint",
    "severity": 9,
    "boundary": [(0.4, 0.4), (0.4, 0.6), (0.6, 0.6), (0.6, 0.4)],
}


def _loc(point: tuple[float, float]) -> Location:
    return Location(latitude=point[0], longitude=point[1])


def _latlon(route) -> list[tuple[float, float]]:
    return [(lat, lon) for lat, lon, _ in route.coordinates()]


def test_shortest_takes_the_diagonal_first() -> None:
    graph = build_graph(_roads())
    result = plan_on_graph(graph, _loc(A), _loc(C), RouteCriteria(shortest=True))

    # C-D runs along a higher parallel than A-B, so A-D-C is a little shorter.
    assert [_latlon(r) for r in result.routes] == [[A, C], [A, D, C], [A, B, C]]
    assert result.start.location == _loc(A)
    assert result.end.location == _loc(C)


def test_safest_avoids_the_hazard_until_it_runs_out_of_options() -> None:
    graph = build_graph(_roads(), [_CHECKPOINT])
    result = plan_on_graph(graph, _loc(A), _loc(C), RouteCriteria(safest=True))

    assert [_latlon(r) for r in result.routes] == [[A, B, C], [A, D, C], [A, C]]
    assert [r.road_ids for r in result.routes] == [("A-B", "B-C"), ("D-A", "C-D"), ("A-C",)]
    assert result.routes[0].cost == pytest.approx(0.2)
    assert result.routes[2].cost == pytest.approx(0.9)


def test_query_points_snap_to_nearest_junction() -> None:
    graph = build_graph(_roads())
    result = plan_on_graph(
        graph,
        PointInput(lat=0.001, lon=-0.002),
        PointInput(lat=1.002, lon=0.999),
        RouteCriteria(shortest=True),
        route_count=1,
    )
    assert result.start.location == _loc(A)
    assert result.end.location == _loc(C)
    assert len(result.routes) == 1


def test_endpoints_resolving_to_one_junction_are_rejected() -> None:
    graph = build_graph(_roads())
    with pytest.raises(EndpointResolutionError) as exc:
        plan_on_graph(graph, _loc(A), Location(latitude=0.0001, longitude=0.0001), RouteCriteria(safest=True))
    assert exc.value.reason_code == "endpoints_coincide"


def test_snap_distance_cap_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "snap_max_distance_km", 0.01)
    graph = build_graph(_roads())

    # Exact junction hits are always accepted.
    assert plan_on_graph(graph, _loc(A), _loc(C), RouteCriteria(fastest=True)).routes

    with pytest.raises(EndpointResolutionError) as exc:
        plan_on_graph(graph, _loc(A), Location(latitude=1.5, longitude=1.5), RouteCriteria(fastest=True))
    assert exc.value.reason_code == "endpoint_unresolved"
    assert exc.value.details["endpoint"] == "end"


def test_graph_without_junctions_cannot_be_planned() -> None:
    graph = build_graph([{"id": "solo", "points": [A, B]}])
    with pytest.raises(EndpointResolutionError) as exc:
        resolve_endpoint(graph, _loc(A), label="start")
    assert exc.value.reason_code == "graph_has_no_intersections"


def test_no_criteria_falls_back_to_fewest_roads() -> None:
    graph = build_graph(_roads())
    result = plan_on_graph(graph, _loc(B), _loc(D), RouteCriteria())

    # Two roads either way, ties settle the lower junction index; the third
    # route keeps the first road of route 1 and crosses the diagonal.
    assert [_latlon(r) for r in result.routes] == [[B, A, D], [B, C, D], [B, A, C, D]]
    assert [r.cost for r in result.routes] == [2.0, 2.0, 3.0]


def test_plan_routes_end_to_end() -> None:
    request = RoutePlanRequest.model_validate(
        {
            "roads": _roads(),
            "hazards": [_CHECKPOINT],
            "start": [0.0, 0.0],
            "end": {"lat": 1.0, "lon": 1.0},
            "criteria": {"safety": True},
            "route_count": 2,
        }
    )
    response = plan_routes(request)

    assert response.intersection_count == 4
    assert response.road_count == 5
    assert response.start == (0.0, 0.0, 0.0)
    assert response.end == (1.0, 1.0, 0.0)
    assert [[(lat, lon) for lat, lon, _ in route.coordinates] for route in response.routes] == [
        [A, B, C],
        [A, D, C],
    ]
    assert response.routes[0].road_ids == ["A-B", "B-C"]
    assert response.routes[0].polyline == [(0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (1.0, 1.0, 0.0)]


def test_second_route_reuses_the_only_road_out_of_the_start() -> None:
    a, b, c, d = (0.0, 0.0), (0.0, 1.0), (0.0, 2.0), (1.0, 1.5)
    graph = build_graph(
        [
            {"id": "A-B", "points": [a, b]},
            {"id": "B-C", "points": [b, c]},
            {"id": "B-D", "points": [b, d]},
            {"id": "D-C", "points": [d, c]},
            {"id": "spur", "points": [a, (-1.0, 0.0)]},
        ]
    )
    result = plan_on_graph(graph, _loc(a), _loc(c), RouteCriteria(shortest=True))

    assert [r.road_ids for r in result.routes] == [("A-B", "B-C"), ("A-B", "B-D", "D-C")]
