"""Configuration dataclasses for the queue and routing core."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import numpy as np

from qnirvana.core.entities import DEFAULT_TIER_SCORES, PriorityTier, ScoringMode


@dataclass(frozen=True)
class PriorityPolicy:
    """Table-driven priority scoring policy.

    Attributes:
        tier_scores: Score awarded to each tier (higher is seen first).
            Copied into a read-only mapping on construction.
        mode: TABLE evaluates the tier rules; CONSTANT forces every
            patient into ``constant_tier``.
        constant_tier: Tier used when mode is CONSTANT.
        senior_age_threshold: Minimum age (years) for the senior tier.
        child_age_limit: Patients younger than this (years) are in the
            child tier.
        senior_age_bonus: Add one point per five years past the senior
            threshold, capped at nine.
    """
    tier_scores: Mapping[PriorityTier, int] = field(
        default_factory=lambda: dict(DEFAULT_TIER_SCORES)
    )
    mode: ScoringMode = ScoringMode.TABLE
    constant_tier: PriorityTier = PriorityTier.GENERAL
    senior_age_threshold: int = 60
    child_age_limit: int = 2
    senior_age_bonus: bool = False

    def __post_init__(self) -> None:
        missing = [tier.value for tier in PriorityTier if tier not in self.tier_scores]
        if missing:
            raise ValueError(f"tier_scores missing tiers: {missing}")
        object.__setattr__(self, "tier_scores", MappingProxyType(dict(self.tier_scores)))
        if self.child_age_limit > self.senior_age_threshold:
            raise ValueError(
                f"child_age_limit ({self.child_age_limit}) must not exceed "
                f"senior_age_threshold ({self.senior_age_threshold})"
            )

    def score_for(self, tier: PriorityTier) -> int:
        """Score awarded to ``tier`` under this policy."""
        return self.tier_scores[tier]


# Documented behaviour: evaluate the full tier table.
TABLE_POLICY = PriorityPolicy()

# Override that places every patient in the general tier regardless of flags.
ALWAYS_GENERAL_POLICY = PriorityPolicy(
    mode=ScoringMode.CONSTANT, constant_tier=PriorityTier.GENERAL
)


@dataclass
class CoreConfig:
    """Runtime configuration for the queue and routing core.

    Attributes:
        weight_min: Lowest allowed edge weight (minutes). Must be >= 1 so
            shortest-path weights are never negative.
        weight_max: Highest allowed edge weight (minutes).
        perturbation_bound: Each traffic tick moves a weight by an integer
            in [-bound, +bound].
        tick_interval: Seconds between traffic ticks.
        avg_consult_minutes: Average consultation length used for wait
            estimates.
        priority_policy: Scoring policy for new patients.
        random_seed: Master seed for reproducibility.
    """

    # Edge weight bounds (minutes)
    weight_min: int = 1
    weight_max: int = 15

    # Traffic mutator
    perturbation_bound: int = 2
    tick_interval: float = 10.0

    # Queue
    avg_consult_minutes: int = 10
    priority_policy: PriorityPolicy = TABLE_POLICY

    # Reproducibility
    random_seed: int = 42

    # RNG stream (created in __post_init__)
    rng_traffic: Optional[np.random.Generator] = None

    def __post_init__(self) -> None:
        """Validate bounds and create the traffic RNG stream."""
        if self.weight_min < 1:
            raise ValueError(f"weight_min must be >= 1, got {self.weight_min}")
        if self.weight_max < self.weight_min:
            raise ValueError(
                f"weight_max ({self.weight_max}) must be >= weight_min ({self.weight_min})"
            )
        if self.perturbation_bound < 0:
            raise ValueError(
                f"perturbation_bound must be >= 0, got {self.perturbation_bound}"
            )
        if self.tick_interval <= 0:
            raise ValueError(f"tick_interval must be > 0, got {self.tick_interval}")
        if self.avg_consult_minutes < 0:
            raise ValueError(
                f"avg_consult_minutes must be >= 0, got {self.avg_consult_minutes}"
            )
        self.rng_traffic = np.random.default_rng(self.random_seed)

    @property
    def weight_bounds(self) -> Tuple[int, int]:
        """Closed (min, max) range for edge weights."""
        return self.weight_min, self.weight_max

    def clone_with_seed(self, new_seed: int) -> "CoreConfig":
        """Create a copy of this config with a different seed.

        Args:
            new_seed: The new random seed to use.

        Returns:
            A new CoreConfig instance with updated seed and a fresh RNG.
        """
        return CoreConfig(
            weight_min=self.weight_min,
            weight_max=self.weight_max,
            perturbation_bound=self.perturbation_bound,
            tick_interval=self.tick_interval,
            avg_consult_minutes=self.avg_consult_minutes,
            priority_policy=self.priority_policy,
            random_seed=new_seed,
        )
