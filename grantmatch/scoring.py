"""
Scoring Logic for grant matches.

Responsibilities:
- Compute a deterministic 0-100 match score between a profile and a grant
  that already passed the eligibility filter.
- Emit which soft dimensions contributed and why.

Non-Responsibilities:
- No exclusion. A grant is never dropped here.
- No ordering or thresholds.

Invariant:
Given identical inputs (and weights), this module always returns the same
score and explanation.

Weights (points at full match):
    baseline       40  every grant that passed hard eligibility
    farm_type      15  grant lists the profile's farm type; full points when
                       the list has at most two entries, scaled down beyond
    goals          30  share of the profile's goals the grant funds
    operator_type   5  grant is restricted to exactly the profile's operator type
    county          5  grant names the profile's county
    employees       5  grant states an employee floor/ceiling the profile meets
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .models import FarmProfile, FundingGoal, GrantRecord
from .normalize import normalize_county

MIN_SCORE = 0
MAX_SCORE = 100

GOAL_LABELS: Dict[FundingGoal, str] = {
    FundingGoal.IRRIGATION: "irrigation/water systems",
    FundingGoal.EQUIPMENT: "equipment purchases",
    FundingGoal.LAND_DEVELOPMENT: "land development",
    FundingGoal.CATTLE: "livestock/cattle",
    FundingGoal.CONSERVATION: "conservation practices",
    FundingGoal.OPERATING: "operating expenses",
}


@dataclass(frozen=True)
class ScoringWeights:
    baseline: float = 40.0
    farm_type: float = 15.0
    goals: float = 30.0
    operator_type: float = 5.0
    county: float = 5.0
    employees: float = 5.0
    # farm type lists up to this size count as a deliberate match
    tight_set_size: int = 2


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class ScoreBreakdown:
    score: int
    points: Tuple[Tuple[str, float], ...]
    reasons: Tuple[str, ...]

    @property
    def dimensions(self) -> Tuple[str, ...]:
        """Soft dimensions that added points (baseline excluded)."""
        return tuple(name for name, value in self.points if name != "baseline" and value > 0)


def _clamp(value: float) -> int:
    rounded = math.floor(value + 0.5)
    return max(MIN_SCORE, min(MAX_SCORE, rounded))


class Scorer:
    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS):
        self.weights = weights

    def farm_type_points(self, profile: FarmProfile, grant: GrantRecord) -> float:
        if not grant.farm_types or profile.farm_type not in grant.farm_types:
            return 0.0
        tightness = min(1.0, self.weights.tight_set_size / len(grant.farm_types))
        return self.weights.farm_type * tightness

    def goal_points(self, profile: FarmProfile, grant: GrantRecord) -> float:
        if not profile.goals or not grant.goals:
            return 0.0
        overlap = len(profile.goals & grant.goals)
        return self.weights.goals * overlap / len(profile.goals)

    def operator_type_points(self, profile: FarmProfile, grant: GrantRecord) -> float:
        if grant.operator_types == frozenset({profile.operator_type}):
            return self.weights.operator_type
        return 0.0

    def county_points(self, profile: FarmProfile, grant: GrantRecord) -> float:
        county = normalize_county(profile.county)
        if county and county in {normalize_county(c) for c in grant.counties}:
            return self.weights.county
        return 0.0

    def employee_points(self, profile: FarmProfile, grant: GrantRecord) -> float:
        if not grant.has_employee_range:
            return 0.0
        if grant.employees_min is not None and profile.employee_count < grant.employees_min:
            return 0.0
        if grant.employees_max is not None and profile.employee_count > grant.employees_max:
            return 0.0
        return self.weights.employees

    def score_grant(self, profile: FarmProfile, grant: GrantRecord) -> ScoreBreakdown:
        points: List[Tuple[str, float]] = [
            ("baseline", self.weights.baseline),
            ("farm_type", self.farm_type_points(profile, grant)),
            ("goals", self.goal_points(profile, grant)),
            ("operator_type", self.operator_type_points(profile, grant)),
            ("county", self.county_points(profile, grant)),
            ("employees", self.employee_points(profile, grant)),
        ]
        total = sum(value for _, value in points)
        return ScoreBreakdown(
            score=_clamp(total),
            points=tuple(points),
            reasons=tuple(self._reasons(profile, grant, dict(points))),
        )

    def _reasons(self, profile: FarmProfile, grant: GrantRecord, points: Dict[str, float]) -> List[str]:
        reasons: List[str] = []
        if points["goals"] > 0:
            matching = sorted(profile.goals & grant.goals, key=lambda g: g.value)
            labels = [GOAL_LABELS[g] for g in matching[:2]]
            reasons.append(f"Funds {' and '.join(labels)}")
        if points["farm_type"] > 0:
            reasons.append(f"Designed for {profile.farm_type.value} operations")
        if points["operator_type"] > 0:
            reasons.append(f"Restricted to {profile.operator_type.value.replace('_', ' ')} applicants")
        if points["county"] > 0:
            reasons.append(f"Targets {normalize_county(profile.county).title()} County")
        if points["employees"] > 0:
            reasons.append("Your employee count fits this program")
        if grant.is_statewide_wildcard:
            reasons.append("Available nationwide")
        else:
            reasons.append(f"Open to {profile.state} operators")
        return reasons


_default_scorer = Scorer()


def score(profile: FarmProfile, grant: GrantRecord) -> int:
    """Match score in [0, 100] using the default weights."""
    return _default_scorer.score_grant(profile, grant).score
