"""Core entity definitions shared by the queue and routing layers.

This module contains enums and basic types that are used across
the codebase, placed here to avoid circular imports.
"""

from enum import Enum


class PriorityTier(Enum):
    """Patient priority tiers for the consultation queue.

    Tiers are listed from most to least urgent. The numeric score for
    each tier lives in the scoring policy, not here, so the table can be
    changed without touching the enum.
    """
    EMERGENCY = "emergency"
    MATERNITY = "maternity"
    SENIOR = "senior"
    CHILD_UNDER_2 = "child_under_2"
    GENERAL = "general"


class ScoringMode(Enum):
    """How the priority model turns patient attributes into a tier.

    - TABLE: Evaluate the tier rules (emergency > maternity > senior > child)
    - CONSTANT: Ignore attributes and return a single configured tier
    """
    TABLE = "table"
    CONSTANT = "constant"


class QueueStatus(Enum):
    """Lifecycle of a queue entry."""
    WAITING = "waiting"
    IN_CONSULTATION = "in_consultation"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Canonical tier -> score table
DEFAULT_TIER_SCORES = {
    PriorityTier.EMERGENCY: 100,
    PriorityTier.MATERNITY: 80,
    PriorityTier.SENIOR: 70,
    PriorityTier.CHILD_UNDER_2: 60,
    PriorityTier.GENERAL: 50,
}
