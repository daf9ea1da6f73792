"""
Routing graph store.

Holds an undirected weighted road graph whose topology is fixed at
construction and whose edge weights change over time.

Strategy: each undirected edge has exactly one stored weight, keyed by the
unordered node pair, so weight(u, v) == weight(v, u) by construction.
Writes build a new weight mapping under a lock and swap it in; a snapshot
keeps a reference to whichever mapping was current, so readers never see
a half-applied update and never block the writer.
"""

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple

from qnirvana.core.errors import InvalidInputError, UnknownEdgeError, UnknownNodeError
from qnirvana.core.networks import NetworkConfig, NodeSpec

logger = logging.getLogger(__name__)

EdgeKey = FrozenSet[str]


def edge_key(u: str, v: str) -> EdgeKey:
    """Unordered key for the edge between ``u`` and ``v``."""
    return frozenset((u, v))


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp ``value`` into the closed range [lower, upper]."""
    return max(lower, min(upper, int(value)))


@dataclass(frozen=True)
class Edge:
    """Undirected edge, endpoints stored in sorted order."""
    u: str
    v: str
    weight: int


class GraphSnapshot:
    """Immutable point-in-time view of the routing graph.

    Attributes:
        nodes: Read-only mapping of node id to NodeSpec.
        version: Number of weight updates applied before this snapshot.
    """

    def __init__(
        self,
        nodes: Mapping[str, NodeSpec],
        adjacency: Mapping[str, Tuple[str, ...]],
        weights: Mapping[EdgeKey, int],
        version: int = 0,
    ):
        self.nodes = nodes
        self._adjacency = adjacency
        self._weights = weights
        self.version = version

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def weight(self, u: str, v: str) -> int:
        """Weight of the edge between ``u`` and ``v``."""
        try:
            return self._weights[edge_key(u, v)]
        except KeyError:
            raise UnknownEdgeError(u, v) from None

    def has_edge(self, u: str, v: str) -> bool:
        return edge_key(u, v) in self._weights

    def neighbours(self, node_id: str) -> Iterator[Tuple[str, int]]:
        """Yield (neighbour, weight) pairs in sorted neighbour order."""
        if node_id not in self.nodes:
            raise UnknownNodeError(node_id)
        for other in self._adjacency[node_id]:
            yield other, self._weights[edge_key(node_id, other)]

    def edges(self) -> List[Edge]:
        """All edges, sorted by endpoints."""
        result = []
        for key, weight in self._weights.items():
            u, v = sorted(key)
            result.append(Edge(u, v, weight))
        return sorted(result, key=lambda e: (e.u, e.v))

    def to_adjacency(self) -> Dict[str, Dict[str, int]]:
        """Plain nested dict ``{node: {neighbour: weight}}`` for rendering layers."""
        return {
            node_id: {other: weight for other, weight in self.neighbours(node_id)}
            for node_id in self.nodes
        }


class RoutingGraphStore:
    """
    Owner of the mutable routing graph.

    One writer (the traffic mutator or a manual traffic trigger) and any
    number of readers. Readers take a ``get_snapshot()`` and work on it
    without further locking.

    Attributes:
        weight_min: Lowest weight any edge may hold.
        weight_max: Highest weight any edge may hold.
        name: Network name for logging.
    """

    def __init__(
        self,
        nodes: Iterable[NodeSpec],
        edges: Iterable[Tuple[str, str, int]],
        weight_min: int = 1,
        weight_max: int = 15,
        name: str = "network",
    ):
        """
        Build a store from node specs and (u, v, weight) edge triples.

        Initial weights are clamped into [weight_min, weight_max].

        Raises:
            InvalidInputError: On duplicate nodes, unknown endpoints,
                self loops, duplicate edges or bad bounds.
        """
        if weight_min < 1:
            raise InvalidInputError(f"weight_min must be >= 1, got {weight_min}")
        if weight_max < weight_min:
            raise InvalidInputError(
                f"weight_max ({weight_max}) must be >= weight_min ({weight_min})"
            )
        self.weight_min = weight_min
        self.weight_max = weight_max
        self.name = name

        node_map: Dict[str, NodeSpec] = {}
        for node in nodes:
            if node.node_id in node_map:
                raise InvalidInputError(f"Duplicate node: {node.node_id!r}")
            node_map[node.node_id] = node

        weights: Dict[EdgeKey, int] = {}
        neighbour_sets: Dict[str, set] = {node_id: set() for node_id in node_map}
        for u, v, weight in edges:
            for endpoint in (u, v):
                if endpoint not in node_map:
                    raise InvalidInputError(f"Edge ({u!r}, {v!r}) references unknown node {endpoint!r}")
            if u == v:
                raise InvalidInputError(f"Self loop on {u!r} is not allowed")
            key = edge_key(u, v)
            if key in weights:
                raise InvalidInputError(f"Duplicate edge ({u!r}, {v!r})")
            weights[key] = clamp(weight, weight_min, weight_max)
            neighbour_sets[u].add(v)
            neighbour_sets[v].add(u)

        self._nodes = MappingProxyType(node_map)
        self._adjacency = MappingProxyType(
            {node_id: tuple(sorted(others)) for node_id, others in neighbour_sets.items()}
        )
        # (weights, version) swapped as one reference on every write
        self._state: Tuple[Mapping[EdgeKey, int], int] = (MappingProxyType(weights), 0)
        self._write_lock = threading.Lock()

    @classmethod
    def from_network(
        cls,
        network: NetworkConfig,
        weight_min: int = 1,
        weight_max: int = 15,
    ) -> "RoutingGraphStore":
        """Build a store from a NetworkConfig preset."""
        return cls(
            network.nodes,
            network.edges,
            weight_min=weight_min,
            weight_max=weight_max,
            name=network.name,
        )

    @property
    def node_ids(self) -> Tuple[str, ...]:
        return tuple(self._nodes)

    def get_snapshot(self) -> GraphSnapshot:
        """Immutable view of the current graph."""
        weights, version = self._state
        return GraphSnapshot(self._nodes, self._adjacency, weights, version)

    def update_weight(self, u: str, v: str, new_weight: int) -> int:
        """
        Set the weight of edge (u, v), clamped into bounds.

        Both directions change together since the edge has a single
        stored weight.

        Args:
            u: One endpoint.
            v: The other endpoint.
            new_weight: Requested weight, any integer.

        Returns:
            The weight actually stored.

        Raises:
            UnknownNodeError: If either endpoint is not in the graph.
            UnknownEdgeError: If the nodes are not adjacent.
        """
        for endpoint in (u, v):
            if endpoint not in self._nodes:
                raise UnknownNodeError(endpoint)
        key = edge_key(u, v)
        stored = clamp(new_weight, self.weight_min, self.weight_max)
        if stored != new_weight:
            logger.debug(
                f"{self.name}: clamped weight {new_weight} on ({u}, {v}) to {stored}"
            )

        with self._write_lock:
            weights, version = self._state
            if key not in weights:
                raise UnknownEdgeError(u, v)
            updated = dict(weights)
            updated[key] = stored
            self._state = (MappingProxyType(updated), version + 1)
        return stored

    def weight(self, u: str, v: str) -> int:
        """Current weight of edge (u, v)."""
        return self.get_snapshot().weight(u, v)

    def node(self, node_id: str) -> Optional[NodeSpec]:
        return self._nodes.get(node_id)
