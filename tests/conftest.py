"""Pytest fixtures for Q Nirvana tests."""

from datetime import datetime, timedelta, timezone

import pytest

from qnirvana.core.config import CoreConfig
from qnirvana.core.entities import PriorityTier
from qnirvana.core.networks import NetworkConfig, NodeSpec
from qnirvana.model.graph import RoutingGraphStore
from qnirvana.model.queue import QueueEntry


BASE_TIME = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def make_entry(
    entry_id: str,
    score: int,
    minute: int,
    doctor_id: str = "dr-1",
    tier: PriorityTier = PriorityTier.GENERAL,
) -> QueueEntry:
    """Queue entry checked in ``minute`` minutes after BASE_TIME."""
    return QueueEntry(
        entry_id=entry_id,
        appointment_id=f"appt-{entry_id}",
        doctor_id=doctor_id,
        patient_id=f"patient-{entry_id}",
        priority_tier=tier,
        priority_score=score,
        checked_in_at=BASE_TIME + timedelta(minutes=minute),
    )


@pytest.fixture
def entry_factory():
    """Factory for queue entries with minute-offset check-in times."""
    return make_entry


@pytest.fixture
def default_seed() -> int:
    """Default random seed for reproducible tests."""
    return 42


@pytest.fixture
def config(default_seed) -> CoreConfig:
    """Default configuration with a fixed seed."""
    return CoreConfig(random_seed=default_seed)


@pytest.fixture
def triangle_network() -> NetworkConfig:
    """A-B=4, B-C=3, A-C=10 plus an isolated node D."""
    return NetworkConfig(
        name="triangle",
        nodes=(
            NodeSpec("A", "Alpha"),
            NodeSpec("B", "Bravo"),
            NodeSpec("C", "Charlie"),
            NodeSpec("D", "Delta"),
        ),
        edges=(("A", "B", 4), ("B", "C", 3), ("A", "C", 10)),
    )


@pytest.fixture
def triangle_store(triangle_network) -> RoutingGraphStore:
    return RoutingGraphStore.from_network(triangle_network, 1, 15)
