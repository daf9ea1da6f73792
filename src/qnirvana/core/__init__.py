"""Core foundation layer: entities, errors, configuration, preset networks."""

from qnirvana.core.config import (
    ALWAYS_GENERAL_POLICY,
    TABLE_POLICY,
    CoreConfig,
    PriorityPolicy,
)
from qnirvana.core.entities import PriorityTier, QueueStatus, ScoringMode
from qnirvana.core.errors import (
    InvalidInputError,
    QNirvanaError,
    UnknownEdgeError,
    UnknownEntryError,
    UnknownNodeError,
)
from qnirvana.core.networks import (
    CITY_NETWORK,
    LANDMARK_NETWORK,
    PRESET_NETWORKS,
    NetworkConfig,
    NodeSpec,
)

__all__ = [
    "ALWAYS_GENERAL_POLICY",
    "TABLE_POLICY",
    "CoreConfig",
    "PriorityPolicy",
    "PriorityTier",
    "QueueStatus",
    "ScoringMode",
    "InvalidInputError",
    "QNirvanaError",
    "UnknownEdgeError",
    "UnknownEntryError",
    "UnknownNodeError",
    "CITY_NETWORK",
    "LANDMARK_NETWORK",
    "PRESET_NETWORKS",
    "NetworkConfig",
    "NodeSpec",
]
