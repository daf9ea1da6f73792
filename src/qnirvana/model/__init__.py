"""Model layer: priority scoring, queue ordering, routing graph, traffic."""

from qnirvana.model.priority import PatientAttributes, PriorityAssignment, score_patient
from qnirvana.model.queue import (
    QueueEntry,
    create_queue_entry,
    estimate_wait,
    insert_into_queue,
    reassign_queue,
    sort_queue,
)
from qnirvana.model.queue_registry import QueueRegistry
from qnirvana.model.graph import GraphSnapshot, RoutingGraphStore
from qnirvana.model.routing import DispatchRoute, PathResult, dispatch_route, shortest_path
from qnirvana.model.traffic import BackgroundTrafficTask, TrafficMutator

__all__ = [
    "PatientAttributes",
    "PriorityAssignment",
    "score_patient",
    "QueueEntry",
    "create_queue_entry",
    "estimate_wait",
    "insert_into_queue",
    "reassign_queue",
    "sort_queue",
    "QueueRegistry",
    "GraphSnapshot",
    "RoutingGraphStore",
    "DispatchRoute",
    "PathResult",
    "dispatch_route",
    "shortest_path",
    "BackgroundTrafficTask",
    "TrafficMutator",
]
