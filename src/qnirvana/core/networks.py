"""Road network definitions for the routing graph store.

Both presets feed the same ``RoutingGraphStore``; only the data differs.
Weights are travel times in minutes.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class NodeSpec:
    """A location in the road network.

    Attributes:
        node_id: Identifier used by the routing algorithm.
        name: Display name.
        location: Optional (lat, lng) pair, carried for map rendering only.
    """
    node_id: str
    name: str
    location: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class NetworkConfig:
    """Topology and initial weights for a routing graph.

    Attributes:
        name: Network identifier.
        nodes: Locations in the network.
        edges: Undirected (u, v, weight) triples; each pair listed once.
    """
    name: str
    nodes: Tuple[NodeSpec, ...]
    edges: Tuple[Tuple[str, str, int], ...]

    @property
    def node_ids(self) -> Tuple[str, ...]:
        """Node identifiers in declaration order."""
        return tuple(node.node_id for node in self.nodes)


# Lettered city grid used for ambulance routing
CITY_NETWORK = NetworkConfig(
    name="city",
    nodes=(
        NodeSpec("A", "MG Road", (12.9718, 77.6010)),
        NodeSpec("B", "Indiranagar", (12.9783, 77.6408)),
        NodeSpec("C", "Marathahalli", (12.9569, 77.7011)),
        NodeSpec("D", "Richmond Town", (12.9645, 77.6041)),
        NodeSpec("E", "Koramangala", (12.9279, 77.6271)),
        NodeSpec("F", "Bellandur", (12.9304, 77.6784)),
        NodeSpec("G", "Jayanagar", (12.9298, 77.5823)),
        NodeSpec("H", "BTM Layout", (12.9165, 77.6101)),
        NodeSpec("I", "HSR Layout", (12.9081, 77.6476)),
    ),
    edges=(
        ("A", "B", 4),
        ("A", "D", 5),
        ("B", "C", 3),
        ("B", "E", 2),
        ("C", "F", 6),
        ("D", "E", 4),
        ("D", "G", 3),
        ("E", "F", 4),
        ("E", "H", 5),
        ("F", "I", 2),
        ("G", "H", 6),
        ("H", "I", 5),
    ),
)


# Named landmarks around the hospital, used by the navigation screen
LANDMARK_NETWORK = NetworkConfig(
    name="landmarks",
    nodes=(
        NodeSpec("hospital", "Q Nirvana Hospital"),
        NodeSpec("mg_road", "MG Road"),
        NodeSpec("tech_square", "Tech Square"),
        NodeSpec("richmond_circle", "Richmond Circle"),
        NodeSpec("patient_area_a", "Patient Area A"),
        NodeSpec("patient_area_b", "Patient Area B"),
        NodeSpec("traffic_hub", "Traffic Hub"),
        NodeSpec("east_end", "East End"),
    ),
    edges=(
        ("hospital", "mg_road", 5),
        ("hospital", "tech_square", 12),
        ("hospital", "traffic_hub", 8),
        ("mg_road", "richmond_circle", 4),
        ("mg_road", "traffic_hub", 6),
        ("tech_square", "patient_area_b", 8),
        ("tech_square", "east_end", 10),
        ("richmond_circle", "patient_area_a", 5),
        ("richmond_circle", "traffic_hub", 3),
        ("patient_area_a", "patient_area_b", 15),
        ("patient_area_b", "east_end", 5),
        ("traffic_hub", "east_end", 12),
    ),
)

PRESET_NETWORKS = {
    CITY_NETWORK.name: CITY_NETWORK,
    LANDMARK_NETWORK.name: LANDMARK_NETWORK,
}
