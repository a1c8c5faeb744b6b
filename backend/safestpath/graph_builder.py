from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import GraphConstructionError
from .geo import polyline_length_km
from .hazards import Hazard, severity_of
from .logging_utils import log_event
from .models import HazardInput, RoadInput
from .spatial import Graph, Intersection, Location, LocationKey, Road


@dataclass
class _RoadDraft:
    road_id: str
    name: str
    speed: int
    points: tuple[Location, ...]
    junctions: list[int] = field(default_factory=list)

    def first_positions(self) -> dict[LocationKey, int]:
        positions: dict[LocationKey, int] = {}
        for idx, loc in enumerate(self.points):
            positions.setdefault(loc.key, idx)
        return positions


def _coerce_roads(roads: Iterable[RoadInput | Mapping[str, Any]]) -> list[RoadInput]:
    return [road if isinstance(road, RoadInput) else RoadInput.model_validate(road) for road in roads]


def _coerce_hazards(hazards: Iterable[HazardInput | Hazard | Mapping[str, Any]]) -> list[Hazard]:
    out: list[Hazard] = []
    for raw in hazards:
        if isinstance(raw, Hazard):
            out.append(raw)
            continue
        item = raw if isinstance(raw, HazardInput) else HazardInput.model_validate(raw)
        out.append(
            Hazard(
                name=item.name,
                severity=float(item.severity),
                boundary=tuple(p.to_location() for p in item.boundary),
            )
        )
    return out


def _drafts_from_input(roads: Sequence[RoadInput]) -> list[_RoadDraft]:
    if not roads:
        raise GraphConstructionError(
            reason_code="graph_input_empty",
            message="no road polylines were supplied",
        )
    drafts: list[_RoadDraft] = []
    for road in roads:
        points = tuple(p.to_location() for p in road.points)
        if len(points) < 2 or len({loc.key for loc in points}) < 2:
            raise GraphConstructionError(
                reason_code="graph_polyline_malformed",
                message=f"road {road.id!r} needs at least two distinct points",
                details={"road_id": road.id, "point_count": len(points)},
            )
        drafts.append(_RoadDraft(road_id=road.id, name=road.id, speed=int(road.speed), points=points))
    return drafts


def _candidate_junctions(drafts: Sequence[_RoadDraft]) -> dict[LocationKey, int]:
    """Every polyline point is a candidate; identical locations merge into one (first-seen order)."""
    candidates: dict[LocationKey, int] = {}
    for draft in drafts:
        for loc in draft.points:
            if loc.key not in candidates:
                candidates[loc.key] = len(candidates)
    return candidates


def _attach_roads(drafts: Sequence[_RoadDraft], candidates: Mapping[LocationKey, int]) -> list[list[int]]:
    roads_by_candidate: list[list[int]] = [[] for _ in range(len(candidates))]
    for road_idx, draft in enumerate(drafts):
        seen: set[LocationKey] = set()
        for loc in draft.points:
            if loc.key in seen:
                continue
            seen.add(loc.key)
            roads_by_candidate[candidates[loc.key]].append(road_idx)
    # Road side of the attachment, in candidate creation order.
    for cand_idx, road_idxs in enumerate(roads_by_candidate):
        for road_idx in road_idxs:
            drafts[road_idx].junctions.append(cand_idx)
    return roads_by_candidate


def _trim_junctions(drafts: Sequence[_RoadDraft], roads_by_candidate: Sequence[list[int]]) -> list[int]:
    """Keep only candidates shared by two or more roads and detach the rest."""
    kept = [idx for idx, road_idxs in enumerate(roads_by_candidate) if len(road_idxs) >= 2]
    kept_set = set(kept)
    for draft in drafts:
        draft.junctions = [idx for idx in draft.junctions if idx in kept_set]
    return kept


def _split_roads(drafts: Sequence[_RoadDraft], candidate_keys: Sequence[LocationKey]) -> tuple[list[_RoadDraft], int]:
    out: list[_RoadDraft] = []
    split_count = 0
    for draft in drafts:
        positions = draft.first_positions()
        ordered = sorted(draft.junctions, key=lambda idx: positions[candidate_keys[idx]])
        if len(ordered) <= 2:
            draft.junctions = ordered
            out.append(draft)
            continue
        split_count += 1
        for seq, (start, end) in enumerate(zip(ordered, ordered[1:]), start=1):
            lo = positions[candidate_keys[start]]
            hi = positions[candidate_keys[end]]
            out.append(
                _RoadDraft(
                    road_id=f"{draft.road_id}#{seq}",
                    name=draft.name,
                    speed=draft.speed,
                    points=draft.points[lo : hi + 1],
                    junctions=[start, end],
                )
            )
    return out, split_count


def build_graph(
    roads: Iterable[RoadInput | Mapping[str, Any]],
    hazards: Iterable[HazardInput | Hazard | Mapping[str, Any]] = (),
) -> Graph:
    """Turn raw road polylines (plus hazard areas) into an immutable :class:`Graph`.

    Junctions are polyline points shared by at least two roads, matched by exact
    location. Roads passing through more than two junctions are split into
    consecutive sub-roads. Lengths are computed for every road in one pass before
    the graph-wide maximum is taken, and each road gets the highest severity of
    any hazard it touches (1 when none).
    """
    road_inputs = _coerce_roads(roads)
    hazard_areas = _coerce_hazards(hazards)

    drafts = _drafts_from_input(road_inputs)
    candidates = _candidate_junctions(drafts)
    candidate_keys = list(candidates)
    roads_by_candidate = _attach_roads(drafts, candidates)
    kept = _trim_junctions(drafts, roads_by_candidate)
    drafts, split_count = _split_roads(drafts, candidate_keys)

    lengths = [polyline_length_km(draft.points) for draft in drafts]
    max_length_km = max(lengths, default=0.0)
    severities = [severity_of(draft.points, hazard_areas) for draft in drafts]

    final_index = {cand_idx: new_idx for new_idx, cand_idx in enumerate(kept)}
    locations: dict[int, Location] = {}
    for draft in drafts:
        for loc in draft.points:
            cand_idx = candidates[loc.key]
            if cand_idx in final_index:
                locations.setdefault(cand_idx, loc)

    built_roads = tuple(
        Road(
            index=road_idx,
            road_id=draft.road_id,
            name=draft.name,
            points=draft.points,
            speed=draft.speed,
            severity=severities[road_idx],
            length_km=lengths[road_idx],
            intersections=tuple(final_index[idx] for idx in draft.junctions),
        )
        for road_idx, draft in enumerate(drafts)
    )

    roads_at: list[list[int]] = [[] for _ in kept]
    adjacency: dict[int, list[tuple[int, int]]] = {}
    for road in built_roads:
        for inter_idx in road.intersections:
            roads_at[inter_idx].append(road.index)
        if road.is_dead_end:
            continue
        a, b = road.intersections
        adjacency.setdefault(a, []).append((road.index, b))
        adjacency.setdefault(b, []).append((road.index, a))

    intersections = tuple(
        Intersection(index=new_idx, location=locations[cand_idx], roads=tuple(roads_at[new_idx]))
        for new_idx, cand_idx in enumerate(kept)
    )
    graph = Graph(
        roads=built_roads,
        intersections=intersections,
        max_length_km=max_length_km,
        adjacency=MappingProxyType({idx: tuple(pairs) for idx, pairs in adjacency.items()}),
        index_by_key=MappingProxyType({inter.location.key: inter.index for inter in intersections}),
    )
    parallel_roads = sum(
        1 for road in built_roads if not road.is_dead_end and len(graph.roads_between(*road.intersections)) > 1
    )
    log_event(
        "graph_built",
        stage="graph",
        roads_in=len(road_inputs),
        hazards=len(hazard_areas),
        candidates=len(candidates),
        intersections=len(intersections),
        roads=len(built_roads),
        roads_split=split_count,
        dead_ends=graph.dead_end_count,
        parallel_roads=parallel_roads,
        max_length_km=round(max_length_km, 6),
    )
    return graph
