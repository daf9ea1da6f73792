"""Per-doctor queue ownership with single-writer locking.

The ordering functions in ``qnirvana.model.queue`` are pure. This registry
holds the current ordered queue for each doctor and serialises writes to
each queue with its own lock, so two concurrent submissions to the same
doctor can never drop an entry. Readers get tuples of frozen entries.
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from qnirvana.core.entities import QueueStatus
from qnirvana.core.errors import InvalidInputError, UnknownEntryError
from qnirvana.model.queue import (
    QueueEntry,
    insert_into_queue,
    reassign_queue,
    remove_from_queue,
    sort_queue,
)

logger = logging.getLogger(__name__)


class QueueRegistry:
    """Owns the ordered waiting queue of every doctor.

    Thread Safety:
        One lock per doctor queue. Operations touching two queues
        (``transfer``) take both locks in sorted doctor-id order.
    """

    def __init__(self):
        self._queues: Dict[str, List[QueueEntry]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, doctor_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(doctor_id)
            if lock is None:
                lock = self._locks[doctor_id] = threading.Lock()
            return lock

    def _existing_lock(self, doctor_id: str) -> Optional[threading.Lock]:
        with self._locks_guard:
            return self._locks.get(doctor_id)

    @property
    def doctor_ids(self) -> List[str]:
        """Doctors that currently have a queue (possibly empty)."""
        with self._locks_guard:
            return sorted(self._locks)

    def submit(self, entry: QueueEntry) -> QueueEntry:
        """Insert a waiting entry into its doctor's queue.

        Returns:
            The stored entry with its position filled in.
        """
        if entry.status != QueueStatus.WAITING:
            raise InvalidInputError(
                f"Only waiting entries can be queued, got {entry.status.value}"
            )
        with self._lock_for(entry.doctor_id):
            current = self._queues.get(entry.doctor_id, [])
            if any(e.entry_id == entry.entry_id for e in current):
                raise InvalidInputError(f"Entry {entry.entry_id!r} is already queued")
            updated = insert_into_queue(current, entry)
            self._queues[entry.doctor_id] = updated
        stored = next(e for e in updated if e.entry_id == entry.entry_id)
        logger.debug(
            f"Queued {entry.entry_id} for doctor {entry.doctor_id} "
            f"({entry.priority_tier.value}, position {stored.position})"
        )
        return stored

    def snapshot(self, doctor_id: str) -> Tuple[QueueEntry, ...]:
        """Ordered queue for a doctor; empty if the doctor has none."""
        lock = self._existing_lock(doctor_id)
        if lock is None:
            return ()
        with lock:
            return tuple(self._queues.get(doctor_id, ()))

    def remove(self, doctor_id: str, entry_id: str) -> QueueEntry:
        """Take an entry out of a doctor's queue and return it.

        Raises:
            UnknownEntryError: If the entry is not in that queue.
        """
        lock = self._existing_lock(doctor_id)
        if lock is None:
            raise UnknownEntryError(entry_id)
        with lock:
            current = self._queues.get(doctor_id, [])
            removed = next((e for e in current if e.entry_id == entry_id), None)
            if removed is None:
                raise UnknownEntryError(entry_id)
            self._queues[doctor_id] = remove_from_queue(current, entry_id)
        return replace(removed, position=None)

    def set_status(self, doctor_id: str, entry_id: str, status: QueueStatus) -> QueueEntry:
        """Move an entry out of the waiting state.

        Any non-waiting status removes the entry from the queue.
        """
        if status == QueueStatus.WAITING:
            raise InvalidInputError("Entries cannot be moved back to waiting")
        removed = self.remove(doctor_id, entry_id)
        logger.info(f"Entry {entry_id} for doctor {doctor_id} is now {status.value}")
        return replace(removed, status=status)

    def transfer(self, from_doctor_id: str, to_doctor_id: str) -> List[QueueEntry]:
        """Move a doctor's whole waiting queue onto another doctor.

        Used when a doctor pauses or becomes unavailable. The moved
        entries are merged into the target queue by the normal ordering.

        Returns:
            The target doctor's queue after the merge.
        """
        if from_doctor_id == to_doctor_id:
            return list(self.snapshot(to_doctor_id))
        if self._existing_lock(from_doctor_id) is None:
            # Nothing queued for the source doctor
            return list(self.snapshot(to_doctor_id))

        first, second = sorted((from_doctor_id, to_doctor_id))
        with self._lock_for(first), self._lock_for(second):
            moved = reassign_queue(self._queues.get(from_doctor_id, []), to_doctor_id)
            merged = sort_queue(list(self._queues.get(to_doctor_id, [])) + moved)
            self._queues[from_doctor_id] = []
            self._queues[to_doctor_id] = merged

        logger.info(
            f"Transferred {len(moved)} entries from doctor {from_doctor_id} "
            f"to doctor {to_doctor_id}"
        )
        return list(merged)
