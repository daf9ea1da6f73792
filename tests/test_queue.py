"""Tests for the queue ordering engine."""

import itertools
from dataclasses import replace
from datetime import datetime, timezone

import numpy as np
import pytest

from qnirvana.core.config import ALWAYS_GENERAL_POLICY
from qnirvana.core.entities import PriorityTier, QueueStatus
from qnirvana.core.errors import InvalidInputError, UnknownEntryError
from qnirvana.model.priority import PatientAttributes
from qnirvana.model.queue import (
    create_queue_entry,
    estimate_wait,
    insert_into_queue,
    patients_ahead,
    position_of,
    reassign_queue,
    remove_from_queue,
    sort_queue,
)


def ids(queue):
    return [entry.entry_id for entry in queue]


class TestSortQueue:
    """Test ordering by score then check-in time."""

    def test_emergency_first_then_fifo(self, entry_factory):
        """[100@5, 50@1, 50@2] sorts to [100, 50@1, 50@2]."""
        queue = [
            entry_factory("late-general", 50, 2),
            entry_factory("emergency", 100, 5),
            entry_factory("early-general", 50, 1),
        ]
        result = sort_queue(queue)
        assert ids(result) == ["emergency", "early-general", "late-general"]

    def test_positions_renumbered(self, entry_factory):
        queue = [entry_factory("a", 50, 1), entry_factory("b", 70, 2)]
        result = sort_queue(queue)
        assert [e.position for e in result] == [1, 2]
        assert result[0].entry_id == "b"

    def test_input_not_mutated(self, entry_factory):
        queue = [entry_factory("a", 50, 1), entry_factory("b", 70, 2)]
        sort_queue(queue)
        assert ids(queue) == ["a", "b"]
        assert queue[0].position is None

    def test_idempotent(self, entry_factory):
        """sort(sort(Q)) == sort(Q)."""
        rng = np.random.default_rng(7)
        queue = [
            entry_factory(f"e{i}", int(rng.choice([50, 60, 70, 80, 100])), int(rng.integers(0, 30)))
            for i in range(25)
        ]
        once = sort_queue(queue)
        assert sort_queue(once) == once

    def test_fifo_within_equal_score(self, entry_factory):
        """Equal scores are ordered by arrival regardless of input order."""
        queue = [entry_factory(f"e{m}", 60, m) for m in (9, 3, 7, 1, 5)]
        result = sort_queue(queue)
        assert [e.checked_in_at.minute for e in result] == [1, 3, 5, 7, 9]

    def test_equal_keys_keep_input_order(self, entry_factory):
        """Identical score and arrival: stable, reproducible."""
        queue = [entry_factory("x", 50, 0), entry_factory("y", 50, 0)]
        assert ids(sort_queue(queue)) == ["x", "y"]
        assert ids(sort_queue(list(reversed(queue)))) == ["y", "x"]

    def test_empty_queue(self):
        assert sort_queue([]) == []

    def test_missing_score_fails_fast(self, entry_factory):
        bad = replace(entry_factory("bad", 50, 0), priority_score=None)
        with pytest.raises(InvalidInputError, match="priority_score"):
            sort_queue([entry_factory("ok", 50, 1), bad])

    def test_missing_timestamp_fails_fast(self, entry_factory):
        bad = replace(entry_factory("bad", 50, 0), checked_in_at=None)
        with pytest.raises(InvalidInputError, match="checked_in_at"):
            sort_queue([bad])

    def test_naive_timestamp_rejected(self, entry_factory):
        """Mixing naive and aware check-in times is invalid input, not a TypeError."""
        naive = replace(entry_factory("naive", 50, 0), checked_in_at=datetime(2026, 1, 1, 9))
        with pytest.raises(InvalidInputError, match="naive"):
            sort_queue([entry_factory("aware", 50, 1), naive])


class TestInsertIntoQueue:
    """Test insertion equals sorting the union."""

    def test_insert_matches_sorted_union(self, entry_factory):
        rng = np.random.default_rng(11)
        queue = sort_queue([
            entry_factory(f"e{i}", int(rng.choice([50, 60, 70, 80, 100])), int(rng.integers(0, 20)))
            for i in range(10)
        ])
        for score, minute in itertools.product([50, 70, 100], [0, 10, 25]):
            new = entry_factory(f"new-{score}-{minute}", score, minute)
            assert insert_into_queue(queue, new) == sort_queue(queue + [new])

    def test_insert_into_empty(self, entry_factory):
        result = insert_into_queue([], entry_factory("only", 50, 0))
        assert ids(result) == ["only"]
        assert result[0].position == 1

    def test_emergency_jumps_queue(self, entry_factory):
        queue = sort_queue([entry_factory(f"g{i}", 50, i) for i in range(3)])
        result = insert_into_queue(queue, entry_factory("er", 100, 10))
        assert result[0].entry_id == "er"
        assert len(result) == 4


class TestRemoveAndLookup:
    """Test removal and position lookup."""

    def test_remove_renumbers(self, entry_factory):
        queue = sort_queue([entry_factory(f"e{i}", 50, i) for i in range(3)])
        result = remove_from_queue(queue, "e0")
        assert ids(result) == ["e1", "e2"]
        assert [e.position for e in result] == [1, 2]

    def test_remove_unknown(self, entry_factory):
        with pytest.raises(UnknownEntryError):
            remove_from_queue([entry_factory("a", 50, 0)], "zzz")

    def test_position_and_ahead(self, entry_factory):
        queue = sort_queue([entry_factory(f"e{i}", 50, i) for i in range(4)])
        assert position_of(queue, "e2") == 3
        assert patients_ahead(queue, "e2") == 2
        assert patients_ahead(queue, "e0") == 0

    def test_position_unknown(self):
        with pytest.raises(UnknownEntryError):
            position_of([], "missing")


class TestReassignQueue:
    """Test doctor reassignment."""

    def test_reassign_changes_only_doctor(self, entry_factory):
        queue = sort_queue([
            entry_factory("a", 50, 3),
            entry_factory("b", 100, 5),
            entry_factory("c", 70, 1),
        ])
        result = reassign_queue(queue, "dr-2")

        assert ids(result) == ids(queue)
        assert all(e.doctor_id == "dr-2" for e in result)
        for before, after in zip(queue, result):
            assert replace(after, doctor_id=before.doctor_id) == before

    def test_reassign_does_not_resort(self, entry_factory):
        """Unsorted input stays in its given order."""
        entries = [entry_factory("low", 50, 0), entry_factory("high", 100, 1)]
        assert ids(reassign_queue(entries, "dr-9")) == ["low", "high"]

    def test_originals_untouched(self, entry_factory):
        entries = [entry_factory("a", 50, 0)]
        reassign_queue(entries, "dr-2")
        assert entries[0].doctor_id == "dr-1"


class TestEstimateWait:
    """Test wait estimates."""

    def test_first_position_zero(self):
        assert estimate_wait(1) == 0

    def test_default_average(self):
        assert estimate_wait(3, 10) == 20
        assert estimate_wait(3) == 20

    @pytest.mark.parametrize("position", [1, 2, 5, 17])
    def test_formula(self, position):
        assert estimate_wait(position, 12) == (position - 1) * 12

    def test_position_zero_rejected(self):
        with pytest.raises(InvalidInputError):
            estimate_wait(0)

    def test_non_int_rejected(self):
        with pytest.raises(InvalidInputError):
            estimate_wait(2.5)

    def test_numpy_integer_position(self):
        assert estimate_wait(np.int64(3)) == 20

    def test_bool_rejected(self):
        with pytest.raises(InvalidInputError):
            estimate_wait(True)


class TestCreateQueueEntry:
    """Test entry construction from patient attributes."""

    def test_scores_patient(self):
        entry = create_queue_entry(
            PatientAttributes(age=70), doctor_id="dr-1", patient_id="p-1",
            appointment_id="a-1",
        )
        assert entry.priority_tier == PriorityTier.SENIOR
        assert entry.priority_score == 70
        assert entry.status == QueueStatus.WAITING
        assert entry.position is None
        assert entry.entry_id
        assert entry.checked_in_at.tzinfo is not None

    def test_uses_policy(self):
        entry = create_queue_entry(
            PatientAttributes(age=70, is_emergency=True), doctor_id="dr-1",
            patient_id="p-1", policy=ALWAYS_GENERAL_POLICY,
        )
        assert entry.priority_score == 50

    def test_explicit_ids_and_time(self):
        when = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)
        entry = create_queue_entry(
            PatientAttributes(age=30), doctor_id="dr-1", patient_id="p-1",
            checked_in_at=when, entry_id="fixed",
        )
        assert entry.entry_id == "fixed"
        assert entry.checked_in_at == when

    def test_unique_ids(self):
        attrs = PatientAttributes(age=30)
        a = create_queue_entry(attrs, doctor_id="dr-1", patient_id="p-1")
        b = create_queue_entry(attrs, doctor_id="dr-1", patient_id="p-1")
        assert a.entry_id != b.entry_id

    def test_requires_doctor(self):
        with pytest.raises(InvalidInputError, match="doctor_id"):
            create_queue_entry(PatientAttributes(age=30), doctor_id="", patient_id="p-1")

    def test_naive_check_in_rejected(self):
        with pytest.raises(InvalidInputError, match="timezone-aware"):
            create_queue_entry(
                PatientAttributes(age=30), doctor_id="dr-1", patient_id="p-1",
                checked_in_at=datetime(2026, 1, 1, 9),
            )

    def test_entries_are_frozen(self):
        entry = create_queue_entry(PatientAttributes(age=30), doctor_id="dr-1", patient_id="p")
        with pytest.raises(AttributeError):
            entry.priority_score = 100
