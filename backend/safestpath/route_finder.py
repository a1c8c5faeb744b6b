from __future__ import annotations

import heapq
from dataclasses import dataclass
from math import inf

from .cost_model import CostTable
from .logging_utils import log_event
from .spatial import Graph, Intersection, Location, Route

ROUTE_COUNT = 3


@dataclass(frozen=True)
class ShortestPathTree:
    source: int
    distance: dict[int, float]
    # node -> (previous node, road index used to reach it)
    predecessor: dict[int, tuple[int, int]]
    settled: frozenset[int]

    def cost_to(self, target: int) -> float:
        return self.distance.get(target, inf)

    def path_to(self, target: int) -> tuple[tuple[int, ...], tuple[int, ...]] | None:
        """Return ``(intersections, roads)`` from the source to ``target``, or None if unreached."""
        if target not in self.predecessor:
            return None
        nodes = [target]
        roads: list[int] = []
        step = target
        while step in self.predecessor:
            prev, road_idx = self.predecessor[step]
            roads.append(road_idx)
            nodes.append(prev)
            step = prev
        nodes.reverse()
        roads.reverse()
        return tuple(nodes), tuple(roads)


def _as_index(point: Intersection | int) -> int:
    if isinstance(point, Intersection):
        return point.index
    return int(point)


def _oriented_points(points: tuple[Location, ...], start: Location, end: Location) -> list[Location]:
    keys = [loc.key for loc in points]
    lo = keys.index(start.key)
    hi = keys.index(end.key)
    if lo <= hi:
        return list(points[lo : hi + 1])
    return list(reversed(points[hi : lo + 1]))


class RouteFinder:
    """Find up to ``route_count`` edge-distinct minimum-cost routes between two intersections.

    Each pass is a Dijkstra relaxation over the cost table minus the roads excluded
    by earlier passes. After a route is extracted its interior roads (all but the
    first road out of the source and the last road into the target) are excluded
    for the remaining passes. The first and last roads stay usable, but no road
    sequence is returned twice. Exclusions are local to one :meth:`find_routes`
    call, so one graph and cost table can serve any number of independent queries.

    Source and target must be different intersections; that is checked by the caller.
    """

    def __init__(
        self,
        graph: Graph,
        costs: CostTable,
        source: Intersection | int,
        target: Intersection | int,
        *,
        route_count: int = ROUTE_COUNT,
    ) -> None:
        self.graph = graph
        self.costs = costs
        self.source = _as_index(source)
        self.target = _as_index(target)
        self.route_count = max(0, int(route_count))

    def shortest_path_tree(self, excluded: frozenset[int] = frozenset()) -> ShortestPathTree:
        distance: dict[int, float] = {self.source: 0.0}
        predecessor: dict[int, tuple[int, int]] = {}
        settled: set[int] = set()
        # (distance, intersection index): ties settle the lower index first.
        unsettled: list[tuple[float, int]] = [(0.0, self.source)]
        while unsettled:
            node_dist, node = heapq.heappop(unsettled)
            if node in settled:
                continue
            settled.add(node)
            for road_idx, nxt in self.graph.neighbours(node):
                if road_idx in excluded or nxt in settled:
                    continue
                new_dist = node_dist + self.costs[road_idx]
                if new_dist < distance.get(nxt, inf):
                    distance[nxt] = new_dist
                    predecessor[nxt] = (node, road_idx)
                    heapq.heappush(unsettled, (new_dist, nxt))
        return ShortestPathTree(
            source=self.source,
            distance=distance,
            predecessor=predecessor,
            settled=frozenset(settled),
        )

    def _route_from(self, nodes: tuple[int, ...], road_idxs: tuple[int, ...], cost: float) -> Route:
        locations = tuple(self.graph.intersections[idx].location for idx in nodes)
        polyline: list[Location] = []
        for pos, road_idx in enumerate(road_idxs):
            road = self.graph.roads[road_idx]
            segment = _oriented_points(road.points, locations[pos], locations[pos + 1])
            polyline.extend(segment if not polyline else segment[1:])
        return Route(
            locations=locations,
            road_ids=tuple(self.graph.roads[idx].road_id for idx in road_idxs),
            cost=cost,
            polyline=tuple(polyline),
        )

    def _next_path(
        self,
        excluded: frozenset[int],
        returned: set[tuple[int, ...]],
    ) -> tuple[float, tuple[int, ...], tuple[int, ...]] | None:
        """Cheapest ``(cost, roads, intersections)`` avoiding ``excluded`` and not returned before.

        Only a route without interior roads can come back unchanged. Such a repeat
        is searched again once per road it uses, with that road banned as well.
        """
        best: tuple[float, tuple[int, ...], tuple[int, ...]] | None = None
        pending = [excluded]
        tried: set[frozenset[int]] = set()
        while pending:
            banned = pending.pop()
            if banned in tried:
                continue
            tried.add(banned)
            tree = self.shortest_path_tree(banned)
            found = tree.path_to(self.target)
            if found is None:
                continue
            nodes, road_idxs = found
            if road_idxs in returned:
                pending.extend(banned | {road_idx} for road_idx in road_idxs)
                continue
            candidate = (tree.cost_to(self.target), road_idxs, nodes)
            # Equal costs resolve to the lower road index sequence.
            if best is None or candidate[:2] < best[:2]:
                best = candidate
        return best

    def find_routes(self) -> list[Route]:
        routes: list[Route] = []
        excluded: set[int] = set()
        returned: set[tuple[int, ...]] = set()
        for _ in range(self.route_count):
            found = self._next_path(frozenset(excluded), returned)
            if found is None:
                break
            cost, road_idxs, nodes = found
            routes.append(self._route_from(nodes, road_idxs, cost))
            returned.add(road_idxs)
            # First and last roads stay open to later routes.
            excluded.update(road_idxs[1:-1])
        log_event(
            "routes_found",
            stage="routes",
            source=self.source,
            target=self.target,
            requested=self.route_count,
            found=len(routes),
            excluded_roads=len(excluded),
        )
        return routes
