"""Priority model: patient attributes -> (tier, score).

Rules are evaluated in order and the first match wins:

1. emergency flag            -> EMERGENCY
2. maternity flag and female -> MATERNITY
3. age >= senior threshold   -> SENIOR
4. age < child limit         -> CHILD_UNDER_2
5. otherwise                 -> GENERAL

Scores come from the policy's tier table. A policy in CONSTANT mode skips
the rules entirely.
"""

from dataclasses import dataclass
from numbers import Real
from typing import Any, Mapping, Optional

from qnirvana.core.config import TABLE_POLICY, PriorityPolicy
from qnirvana.core.entities import PriorityTier, ScoringMode
from qnirvana.core.errors import InvalidInputError


@dataclass(frozen=True)
class PatientAttributes:
    """Caller-supplied description of a patient.

    Attributes:
        age: Age in years (fractions allowed for infants).
        is_emergency: Flagged as an emergency case.
        is_maternity: Flagged as a maternity/pregnancy case.
        gender: Free-text gender as recorded at registration.
    """
    age: float
    is_emergency: bool = False
    is_maternity: bool = False
    gender: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.age, bool) or not isinstance(self.age, Real):
            raise InvalidInputError(f"age must be a number, got {self.age!r}")
        if self.age < 0:
            raise InvalidInputError(f"age must be >= 0, got {self.age}")
        for flag in ("is_emergency", "is_maternity"):
            value = getattr(self, flag)
            if not isinstance(value, bool):
                raise InvalidInputError(f"{flag} must be a bool, got {value!r}")
        if self.gender is not None and not isinstance(self.gender, str):
            raise InvalidInputError(f"gender must be a string, got {self.gender!r}")

    @property
    def is_female(self) -> bool:
        return self.gender is not None and self.gender.strip().lower() == "female"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PatientAttributes":
        """Build attributes from a request payload.

        Raises:
            InvalidInputError: If ``age`` is missing or any value has the
                wrong type.
        """
        if not isinstance(data, Mapping):
            raise InvalidInputError(
                f"patient attributes must be a mapping, got {type(data).__name__}"
            )
        if data.get("age") is None:
            raise InvalidInputError("patient attributes missing required field 'age'")
        return cls(
            age=data["age"],
            is_emergency=data.get("is_emergency", False),
            is_maternity=data.get("is_maternity", False),
            gender=data.get("gender"),
        )


@dataclass(frozen=True)
class PriorityAssignment:
    """Result of scoring a patient."""
    tier: PriorityTier
    score: int


def classify_tier(attributes: PatientAttributes, policy: PriorityPolicy = TABLE_POLICY) -> PriorityTier:
    """Apply the tier rules to a patient, ignoring the policy mode."""
    if attributes.is_emergency:
        return PriorityTier.EMERGENCY
    if attributes.is_maternity and attributes.is_female:
        return PriorityTier.MATERNITY
    if attributes.age >= policy.senior_age_threshold:
        return PriorityTier.SENIOR
    if attributes.age < policy.child_age_limit:
        return PriorityTier.CHILD_UNDER_2
    return PriorityTier.GENERAL


def score_patient(
    attributes: PatientAttributes,
    policy: PriorityPolicy = TABLE_POLICY,
) -> PriorityAssignment:
    """Score a patient under ``policy``.

    Args:
        attributes: Validated patient attributes.
        policy: Scoring policy. Defaults to the full tier table.

    Returns:
        PriorityAssignment with the tier and its score.
    """
    if policy.mode == ScoringMode.CONSTANT:
        tier = policy.constant_tier
        return PriorityAssignment(tier=tier, score=policy.score_for(tier))

    tier = classify_tier(attributes, policy)
    score = policy.score_for(tier)
    if tier == PriorityTier.SENIOR and policy.senior_age_bonus:
        score += min(9, int((attributes.age - policy.senior_age_threshold) // 5))
    return PriorityAssignment(tier=tier, score=score)
