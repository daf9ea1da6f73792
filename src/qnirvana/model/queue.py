"""Queue ordering engine.

Every function takes the current queue and returns a new list; nothing
here keeps state between calls. Order is score descending, then check-in
time ascending (FIFO within a tier). Python's sort is stable, so entries
with identical keys keep their input order.
"""

import numbers
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from qnirvana.core.config import TABLE_POLICY, PriorityPolicy
from qnirvana.core.entities import PriorityTier, QueueStatus
from qnirvana.core.errors import InvalidInputError, UnknownEntryError
from qnirvana.model.priority import PatientAttributes, score_patient


DEFAULT_AVG_CONSULT_MINUTES = 10


@dataclass(frozen=True)
class QueueEntry:
    """One patient waiting for a consultation.

    Attributes:
        entry_id: Opaque queue entry identifier.
        appointment_id: Associated appointment.
        doctor_id: Doctor whose queue holds the entry.
        patient_id: Patient being seen.
        priority_tier: Tier assigned at registration.
        priority_score: Score assigned at registration (higher is seen first).
        checked_in_at: Check-in time, set once at creation.
        position: 1-based position from the last reorder. Derived, never
            authoritative.
        status: Lifecycle state.
    """
    entry_id: str
    appointment_id: Optional[str]
    doctor_id: str
    patient_id: str
    priority_tier: PriorityTier
    priority_score: int
    checked_in_at: datetime
    position: Optional[int] = None
    status: QueueStatus = QueueStatus.WAITING


def _order_key(entry: QueueEntry) -> Tuple[int, datetime]:
    if entry.priority_score is None:
        raise InvalidInputError(f"Queue entry {entry.entry_id!r} has no priority_score")
    if entry.checked_in_at is None:
        raise InvalidInputError(f"Queue entry {entry.entry_id!r} has no checked_in_at")
    if entry.checked_in_at.utcoffset() is None:
        raise InvalidInputError(
            f"Queue entry {entry.entry_id!r} has a naive checked_in_at; use an aware datetime"
        )
    return -entry.priority_score, entry.checked_in_at


def sort_queue(queue: Iterable[QueueEntry]) -> List[QueueEntry]:
    """Order a queue and renumber positions from 1.

    Args:
        queue: Entries in any order.

    Returns:
        New list ordered by score (descending) then check-in (ascending).

    Raises:
        InvalidInputError: If an entry lacks a score or its check-in time is
            missing or naive.
    """
    ordered = sorted(queue, key=_order_key)
    return [replace(entry, position=i) for i, entry in enumerate(ordered, start=1)]


def insert_into_queue(queue: Iterable[QueueEntry], new_entry: QueueEntry) -> List[QueueEntry]:
    """Add an entry and reorder. Same result as sorting the union."""
    updated = list(queue)
    updated.append(new_entry)
    return sort_queue(updated)


def remove_from_queue(queue: Iterable[QueueEntry], entry_id: str) -> List[QueueEntry]:
    """Drop an entry (consultation started, finished or cancelled).

    Raises:
        UnknownEntryError: If no entry has ``entry_id``.
    """
    entries = list(queue)
    remaining = [entry for entry in entries if entry.entry_id != entry_id]
    if len(remaining) == len(entries):
        raise UnknownEntryError(entry_id)
    return sort_queue(remaining)


def reassign_queue(entries: Iterable[QueueEntry], new_doctor_id: str) -> List[QueueEntry]:
    """Point every entry at another doctor.

    Order and all other fields are preserved; the doctor does not affect
    priority, so no reorder happens.
    """
    return [replace(entry, doctor_id=new_doctor_id) for entry in entries]


def estimate_wait(position: int, avg_consult_minutes: float = DEFAULT_AVG_CONSULT_MINUTES) -> float:
    """Estimated wait in minutes for the patient at ``position`` (1-based).

    The patient at position 1 is next and waits zero minutes.
    """
    if isinstance(position, bool) or not isinstance(position, numbers.Integral):
        raise InvalidInputError(f"position must be an int, got {position!r}")
    if position < 1:
        raise InvalidInputError(f"position is 1-based, got {position}")
    return (int(position) - 1) * avg_consult_minutes


def position_of(queue: Sequence[QueueEntry], entry_id: str) -> int:
    """1-based position of an entry in an already ordered queue."""
    for i, entry in enumerate(queue, start=1):
        if entry.entry_id == entry_id:
            return i
    raise UnknownEntryError(entry_id)


def patients_ahead(queue: Sequence[QueueEntry], entry_id: str) -> int:
    """Number of patients who will be seen before ``entry_id``."""
    return position_of(queue, entry_id) - 1


def create_queue_entry(
    attributes: PatientAttributes,
    doctor_id: str,
    patient_id: str,
    appointment_id: Optional[str] = None,
    policy: PriorityPolicy = TABLE_POLICY,
    checked_in_at: Optional[datetime] = None,
    entry_id: Optional[str] = None,
) -> QueueEntry:
    """Score a patient and build a waiting queue entry.

    Args:
        attributes: Patient attributes to score.
        doctor_id: Doctor whose queue the patient joins.
        patient_id: Patient identifier.
        appointment_id: Optional appointment identifier.
        policy: Priority scoring policy.
        checked_in_at: Timezone-aware check-in time. Defaults to now (UTC).
        entry_id: Entry identifier. Defaults to a random UUID.

    Returns:
        A new QueueEntry with no position yet.
    """
    if not doctor_id:
        raise InvalidInputError("doctor_id is required")
    if not patient_id:
        raise InvalidInputError("patient_id is required")
    if checked_in_at is not None and checked_in_at.utcoffset() is None:
        raise InvalidInputError("checked_in_at must be timezone-aware")

    assignment = score_patient(attributes, policy)
    return QueueEntry(
        entry_id=entry_id or uuid.uuid4().hex,
        appointment_id=appointment_id,
        doctor_id=doctor_id,
        patient_id=patient_id,
        priority_tier=assignment.tier,
        priority_score=assignment.score,
        checked_in_at=checked_in_at or datetime.now(timezone.utc),
    )
