"""Tests for the shortest-path engine."""

import itertools

import numpy as np
import pytest

from qnirvana.core.errors import UnknownNodeError
from qnirvana.core.networks import CITY_NETWORK, LANDMARK_NETWORK, NetworkConfig, NodeSpec
from qnirvana.model.graph import RoutingGraphStore
from qnirvana.model.routing import PathResult, dispatch_route, shortest_path


def all_simple_path_costs(snapshot, start, end):
    """Brute-force cost of every simple path from start to end."""
    costs = []

    def walk(node, visited, cost):
        if node == end:
            costs.append(cost)
            return
        for neighbour, weight in snapshot.neighbours(node):
            if neighbour not in visited:
                walk(neighbour, visited | {neighbour}, cost + weight)

    walk(start, {start}, 0)
    return costs


def path_cost(snapshot, path):
    return sum(snapshot.weight(u, v) for u, v in zip(path, path[1:]))


class TestShortestPath:
    """Test path selection and costs."""

    def test_two_hops_beat_direct_edge(self, triangle_store):
        """A-B=4, B-C=3, A-C=10: A->C goes through B for 7."""
        result = shortest_path(triangle_store.get_snapshot(), "A", "C")
        assert result.path == ("A", "B", "C")
        assert result.total_cost == 7
        assert result.reachable
        assert result.hops == 2

    def test_isolated_node_unreachable(self, triangle_store):
        """Isolated D gives the unreachable outcome, not an exception."""
        result = shortest_path(triangle_store.get_snapshot(), "A", "D")
        assert not result.reachable
        assert result.total_cost is None
        assert result.path == ()
        assert result.distance_km() is None

    def test_from_isolated_node(self, triangle_store):
        assert not shortest_path(triangle_store.get_snapshot(), "D", "A").reachable

    def test_start_equals_end(self, triangle_store):
        result = shortest_path(triangle_store.get_snapshot(), "B", "B")
        assert result.path == ("B",)
        assert result.total_cost == 0

    def test_unknown_node(self, triangle_store):
        with pytest.raises(UnknownNodeError):
            shortest_path(triangle_store.get_snapshot(), "A", "Z")

    def test_city_route(self):
        """A->I on the city grid: A-B-E-F-I = 4+2+4+2."""
        store = RoutingGraphStore.from_network(CITY_NETWORK)
        result = shortest_path(store.get_snapshot(), "A", "I")
        assert result.path == ("A", "B", "E", "F", "I")
        assert result.total_cost == 12
        assert result.distance_km() == 4.8

    def test_landmark_route(self):
        """Hospital to Patient Area A through MG Road and Richmond Circle."""
        store = RoutingGraphStore.from_network(LANDMARK_NETWORK)
        result = shortest_path(store.get_snapshot(), "hospital", "patient_area_a")
        assert result.path == ("hospital", "mg_road", "richmond_circle", "patient_area_a")
        assert result.total_cost == 14

    def test_reacts_to_weight_change(self, triangle_store):
        """No caching: a new snapshot gives a new answer."""
        triangle_store.update_weight("A", "C", 2)
        result = shortest_path(triangle_store.get_snapshot(), "A", "C")
        assert result.path == ("A", "C")
        assert result.total_cost == 2

    def test_deterministic(self):
        snap = RoutingGraphStore.from_network(CITY_NETWORK).get_snapshot()
        first = shortest_path(snap, "G", "C")
        for _ in range(5):
            assert shortest_path(snap, "G", "C") == first

    def test_disconnected_components(self):
        network = NetworkConfig(
            name="islands",
            nodes=tuple(NodeSpec(n, n) for n in "ABCD"),
            edges=(("A", "B", 2), ("C", "D", 2)),
        )
        snap = RoutingGraphStore.from_network(network).get_snapshot()
        assert not shortest_path(snap, "A", "D").reachable
        assert shortest_path(snap, "C", "D").total_cost == 2


class TestOptimality:
    """Shortest path is never beaten by an enumerated alternative."""

    @pytest.mark.parametrize("seed", range(5))
    def test_optimal_on_random_weights(self, seed):
        rng = np.random.default_rng(seed)
        store = RoutingGraphStore.from_network(CITY_NETWORK)
        for edge in store.get_snapshot().edges():
            store.update_weight(edge.u, edge.v, int(rng.integers(1, 16)))
        snap = store.get_snapshot()

        for start, end in itertools.combinations(CITY_NETWORK.node_ids, 2):
            result = shortest_path(snap, start, end)
            alternatives = all_simple_path_costs(snap, start, end)
            assert result.total_cost == min(alternatives)
            assert path_cost(snap, result.path) == result.total_cost
            assert result.path[0] == start and result.path[-1] == end

    def test_path_has_no_gaps(self):
        snap = RoutingGraphStore.from_network(LANDMARK_NETWORK).get_snapshot()
        for start, end in itertools.permutations(LANDMARK_NETWORK.node_ids, 2):
            path = shortest_path(snap, start, end).path
            assert all(snap.has_edge(u, v) for u, v in zip(path, path[1:]))


class TestDispatchRoute:
    """Test the two-leg vehicle -> pickup -> hospital route."""

    def test_two_legs(self):
        snap = RoutingGraphStore.from_network(CITY_NETWORK).get_snapshot()
        route = dispatch_route(snap, "G", "A", "I")
        assert route.to_pickup.path[0] == "G"
        assert route.to_pickup.path[-1] == "A"
        assert route.to_hospital.path[-1] == "I"
        assert route.total_cost == route.to_pickup.total_cost + route.to_hospital.total_cost
        assert route.reachable

    def test_unreachable_leg(self, triangle_store):
        route = dispatch_route(triangle_store.get_snapshot(), "A", "B", "D")
        assert not route.reachable
        assert route.total_cost is None


def test_unreachable_factory():
    result = PathResult.unreachable("X", "Y")
    assert result.start == "X"
    assert result.hops == 0
    assert not result.reachable
