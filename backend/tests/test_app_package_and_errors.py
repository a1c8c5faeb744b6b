from __future__ import annotations

import safestpath
from safestpath.errors import (
    FROZEN_REASON_CODES,
    EndpointResolutionError,
    GraphConstructionError,
    RoutePlanningError,
    normalize_reason_code,
)


def test_package_imports() -> None:
    # Package marker import should be stable for tooling/tests.
    assert safestpath.__name__ == "safestpath"


def test_route_planning_error_string_and_details() -> None:
    err = GraphConstructionError(
        reason_code="graph_polyline_malformed",
        message="road 'r7' needs at least two distinct points",
        details={"road_id": "r7", "point_count": 1},
    )
    assert str(err) == "road 'r7' needs at least two distinct points"
    assert err.details is not None
    assert err.details["road_id"] == "r7"
    assert isinstance(err, RoutePlanningError)
    assert isinstance(err, ValueError)
    assert not isinstance(err, EndpointResolutionError)


def test_reason_code_normalization() -> None:
    for code in (
        "graph_input_empty",
        "graph_polyline_malformed",
        "graph_has_no_intersections",
        "endpoint_unresolved",
        "endpoints_coincide",
        "route_planning_failed",
    ):
        assert code in FROZEN_REASON_CODES
        assert normalize_reason_code(code) == code
    assert normalize_reason_code(" endpoints_coincide ") == "endpoints_coincide"
    assert normalize_reason_code("unknown_reason") == "route_planning_failed"
    assert normalize_reason_code("", default="endpoint_unresolved") == "endpoint_unresolved"
