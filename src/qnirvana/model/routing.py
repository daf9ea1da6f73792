"""Shortest-path engine over a routing graph snapshot.

Dijkstra with a binary-heap frontier. All weights are >= 1, so the
non-negative precondition always holds. Heap ties are broken by an
insertion counter and neighbours are relaxed in sorted id order, so the
same snapshot always yields the same path.
"""

import heapq
import itertools
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from qnirvana.core.errors import UnknownNodeError
from qnirvana.model.graph import GraphSnapshot


# Simulated kilometres per minute of travel, as shown to drivers
KM_PER_MINUTE = 0.4


@dataclass(frozen=True)
class PathResult:
    """Outcome of a shortest-path query.

    Attributes:
        start: Source node id.
        end: Destination node id.
        path: Node ids from start to end inclusive; empty when unreachable.
        total_cost: Summed edge weights (minutes); None when unreachable.
    """
    start: str
    end: str
    path: Tuple[str, ...]
    total_cost: Optional[int]

    @property
    def reachable(self) -> bool:
        return self.total_cost is not None

    @property
    def hops(self) -> int:
        """Number of edges travelled."""
        return max(0, len(self.path) - 1)

    def distance_km(self, km_per_minute: float = KM_PER_MINUTE) -> Optional[float]:
        """Approximate distance for display; None when unreachable."""
        if self.total_cost is None:
            return None
        return round(self.total_cost * km_per_minute, 1)

    @classmethod
    def unreachable(cls, start: str, end: str) -> "PathResult":
        return cls(start=start, end=end, path=(), total_cost=None)


@dataclass(frozen=True)
class DispatchRoute:
    """Two-leg ambulance route: vehicle -> pickup -> hospital."""
    to_pickup: PathResult
    to_hospital: PathResult

    @property
    def reachable(self) -> bool:
        return self.to_pickup.reachable and self.to_hospital.reachable

    @property
    def total_cost(self) -> Optional[int]:
        if not self.reachable:
            return None
        return self.to_pickup.total_cost + self.to_hospital.total_cost


def shortest_path(graph: GraphSnapshot, start: str, end: str) -> PathResult:
    """Minimum-cost path from ``start`` to ``end``.

    Args:
        graph: Snapshot to route over. Reading a snapshot never blocks
            weight updates on the store.
        start: Source node id.
        end: Destination node id.

    Returns:
        PathResult. If ``end`` cannot be reached the result has an empty
        path and ``total_cost`` None.

    Raises:
        UnknownNodeError: If start or end is not in the graph.
    """
    for node_id in (start, end):
        if node_id not in graph:
            raise UnknownNodeError(node_id)

    distances: Dict[str, float] = {node_id: math.inf for node_id in graph.nodes}
    distances[start] = 0
    previous: Dict[str, Optional[str]] = {node_id: None for node_id in graph.nodes}
    finalised = set()

    counter = itertools.count()
    frontier: List[Tuple[float, int, str]] = []
    for node_id in graph.nodes:
        heapq.heappush(frontier, (distances[node_id], next(counter), node_id))

    while frontier:
        dist, _, current = heapq.heappop(frontier)
        if current in finalised or dist > distances[current]:
            continue  # stale
        if dist == math.inf:
            break  # everything left is unreached
        finalised.add(current)

        if current == end:
            path = [current]
            while previous[path[-1]] is not None:
                path.append(previous[path[-1]])
            path.reverse()
            return PathResult(start=start, end=end, path=tuple(path), total_cost=int(dist))

        for neighbour, weight in graph.neighbours(current):
            if neighbour in finalised:
                continue
            candidate = dist + weight
            if candidate < distances[neighbour]:
                distances[neighbour] = candidate
                previous[neighbour] = current
                heapq.heappush(frontier, (candidate, next(counter), neighbour))

    return PathResult.unreachable(start, end)


def dispatch_route(graph: GraphSnapshot, vehicle: str, pickup: str, hospital: str) -> DispatchRoute:
    """Route a vehicle to a patient and then on to the hospital.

    Both legs use the same snapshot, so they see the same traffic.
    """
    return DispatchRoute(
        to_pickup=shortest_path(graph, vehicle, pickup),
        to_hospital=shortest_path(graph, pickup, hospital),
    )
