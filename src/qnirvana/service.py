"""
HospitalCore: the entry point used by the REST, dashboard and map layers.

Wires the priority model and queue registry together for consultations,
and the graph store, shortest-path engine and traffic mutator together for
ambulance routing.

Example:
    core = HospitalCore(network=CITY_NETWORK)
    entry = core.submit_patient({"age": 72}, doctor_id="dr-1", patient_id="p-9")
    route = core.compute_route("A", "I")
    with core:
        core.start_traffic()
        ...
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from qnirvana.core.config import CoreConfig
from qnirvana.core.entities import QueueStatus
from qnirvana.core.errors import InvalidInputError
from qnirvana.core.networks import CITY_NETWORK, NetworkConfig
from qnirvana.model.graph import GraphSnapshot, RoutingGraphStore
from qnirvana.model.priority import PatientAttributes
from qnirvana.model.queue import (
    QueueEntry,
    create_queue_entry,
    estimate_wait,
    patients_ahead,
    position_of,
    reassign_queue,
)
from qnirvana.model.queue_registry import QueueRegistry
from qnirvana.model.routing import DispatchRoute, PathResult, dispatch_route, shortest_path
from qnirvana.model.traffic import BackgroundTrafficTask, TrafficMutator, WeightChange
from qnirvana.results.collector import TrafficResultsCollector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueStatusView:
    """Where a patient stands in a doctor's queue."""
    entry: QueueEntry
    position: int
    patients_ahead: int
    estimated_wait_minutes: float


class HospitalCore:
    """Queue and routing operations for the surrounding application layers.

    Attributes:
        config: Core configuration.
        queues: Per-doctor queue registry.
        graph: Routing graph store.
        mutator: Traffic mutator, the only writer of edge weights.
    """

    def __init__(
        self,
        config: Optional[CoreConfig] = None,
        network: NetworkConfig = CITY_NETWORK,
        collector: Optional[TrafficResultsCollector] = None,
    ):
        self.config = config or CoreConfig()
        self.queues = QueueRegistry()
        self.graph = RoutingGraphStore.from_network(
            network, self.config.weight_min, self.config.weight_max
        )
        self.mutator = TrafficMutator.from_config(self.graph, self.config, collector=collector)
        self._traffic_task: Optional[BackgroundTrafficTask] = None
        self._clock_origin = time.monotonic()

    def __enter__(self) -> "HospitalCore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop_traffic()

    # ---- consultation queue ----

    def submit_patient(
        self,
        attributes: Union[PatientAttributes, Mapping[str, Any]],
        doctor_id: str,
        patient_id: str,
        appointment_id: Optional[str] = None,
        checked_in_at: Optional[datetime] = None,
    ) -> QueueEntry:
        """Score a patient and add them to a doctor's queue.

        Raises:
            InvalidInputError: If attributes or identifiers are missing or
                have the wrong type.
        """
        try:
            if not isinstance(attributes, PatientAttributes):
                attributes = PatientAttributes.from_dict(attributes)
            entry = create_queue_entry(
                attributes,
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_id=appointment_id,
                policy=self.config.priority_policy,
                checked_in_at=checked_in_at,
            )
        except InvalidInputError as e:
            logger.warning(f"Rejected patient {patient_id!r} for doctor {doctor_id!r}: {e}")
            raise
        return self.queues.submit(entry)

    def get_ordered_queue(self, doctor_id: str) -> List[QueueEntry]:
        """Current ordered waiting queue for a doctor."""
        return list(self.queues.snapshot(doctor_id))

    def reassign_queue(self, entries: Iterable[QueueEntry], new_doctor_id: str) -> List[QueueEntry]:
        """Copies of ``entries`` pointing at ``new_doctor_id``, order kept."""
        return reassign_queue(entries, new_doctor_id)

    def transfer_queue(self, from_doctor_id: str, to_doctor_id: str) -> List[QueueEntry]:
        """Move a paused doctor's waiting patients onto another doctor."""
        return self.queues.transfer(from_doctor_id, to_doctor_id)

    def estimate_wait(self, position: int) -> float:
        """Estimated wait (minutes) at a 1-based position."""
        return estimate_wait(position, self.config.avg_consult_minutes)

    def queue_status(self, doctor_id: str, entry_id: str) -> QueueStatusView:
        """Position, patients ahead and estimated wait for one entry."""
        queue = self.queues.snapshot(doctor_id)
        position = position_of(queue, entry_id)
        return QueueStatusView(
            entry=queue[position - 1],
            position=position,
            patients_ahead=patients_ahead(queue, entry_id),
            estimated_wait_minutes=self.estimate_wait(position),
        )

    def start_consultation(self, doctor_id: str, entry_id: str) -> QueueEntry:
        return self.queues.set_status(doctor_id, entry_id, QueueStatus.IN_CONSULTATION)

    def complete_consultation(self, doctor_id: str, entry_id: str) -> QueueEntry:
        return self.queues.set_status(doctor_id, entry_id, QueueStatus.COMPLETED)

    def cancel_entry(self, doctor_id: str, entry_id: str) -> QueueEntry:
        return self.queues.set_status(doctor_id, entry_id, QueueStatus.CANCELLED)

    # ---- routing ----

    def get_graph_snapshot(self) -> GraphSnapshot:
        return self.graph.get_snapshot()

    def compute_route(self, start_node: str, end_node: str) -> PathResult:
        """Shortest route on the latest snapshot; never cached."""
        result = shortest_path(self.graph.get_snapshot(), start_node, end_node)
        if not result.reachable:
            logger.info(f"{self.graph.name}: no route from {start_node} to {end_node}")
        return result

    def compute_dispatch_route(self, vehicle_node: str, pickup_node: str, hospital_node: str) -> DispatchRoute:
        """Vehicle -> patient -> hospital, both legs on one snapshot."""
        return dispatch_route(self.graph.get_snapshot(), vehicle_node, pickup_node, hospital_node)

    def traffic_clock(self) -> float:
        """Seconds since this core was created; time base for every traffic tick."""
        return time.monotonic() - self._clock_origin

    def trigger_traffic_update(self) -> List[WeightChange]:
        """Apply one traffic tick now (manual "simulate spike")."""
        logger.info(f"{self.graph.name}: manual traffic update")
        return self.mutator.tick(now=self.traffic_clock())

    def start_traffic(self, interval: Optional[float] = None) -> None:
        """Start the wall-clock traffic mutator."""
        if self._traffic_task is not None and self._traffic_task.is_running:
            return
        self._traffic_task = BackgroundTrafficTask(
            self.mutator, interval, clock=self.traffic_clock
        )
        self._traffic_task.start()

    def stop_traffic(self) -> None:
        """Stop the wall-clock traffic mutator; no tick runs afterwards."""
        if self._traffic_task is not None:
            self._traffic_task.stop()
            self._traffic_task = None

    @property
    def traffic_running(self) -> bool:
        return self._traffic_task is not None and self._traffic_task.is_running
