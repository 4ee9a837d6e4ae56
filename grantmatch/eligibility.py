"""
Eligibility Filter.

Responsibilities:
- Apply the hard constraints (status, deadline, geography, farm type,
  operator type, acreage) to every grant in a snapshot.
- Report why grants were excluded.

Non-Responsibilities:
- No scoring.
- No ordering beyond preserving snapshot order.

Invariant:
A grant that fails any hard constraint is never scored, whatever its
soft-dimension fit would have been.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional

from .models import CatalogSnapshot, FarmProfile, GrantRecord, GrantStatus


@dataclass(frozen=True)
class EligibilityResult:
    passes: bool
    reason: Optional[str] = None


PASS = EligibilityResult(passes=True)


def check_status(profile: FarmProfile, grant: GrantRecord, today: date) -> EligibilityResult:
    if grant.status != GrantStatus.OPEN:
        return EligibilityResult(False, f"Grant is {grant.status.value}")
    return PASS


def check_deadline(profile: FarmProfile, grant: GrantRecord, today: date) -> EligibilityResult:
    if grant.is_rolling or grant.deadline is None:
        return PASS
    if grant.deadline < today:
        return EligibilityResult(False, "Deadline passed")
    return PASS


def check_geography(profile: FarmProfile, grant: GrantRecord, today: date) -> EligibilityResult:
    if grant.is_statewide_wildcard or profile.state in grant.states:
        return PASS
    return EligibilityResult(False, "Not available in your state")


def check_farm_type(profile: FarmProfile, grant: GrantRecord, today: date) -> EligibilityResult:
    if not grant.farm_types or profile.farm_type in grant.farm_types:
        return PASS
    return EligibilityResult(False, "Farm type not eligible")


def check_operator_type(profile: FarmProfile, grant: GrantRecord, today: date) -> EligibilityResult:
    if not grant.operator_types or profile.operator_type in grant.operator_types:
        return PASS
    return EligibilityResult(False, "Operator type not eligible")


def check_acreage(profile: FarmProfile, grant: GrantRecord, today: date) -> EligibilityResult:
    if not grant.has_acreage_range:
        return PASS
    acres = profile.acres_band.midpoint
    if grant.acres_min is not None and acres < grant.acres_min:
        return EligibilityResult(False, "Farm size outside acreage range")
    if grant.acres_max is not None and acres > grant.acres_max:
        return EligibilityResult(False, "Farm size outside acreage range")
    return PASS


HARD_FILTERS: List[Callable[[FarmProfile, GrantRecord, date], EligibilityResult]] = [
    check_status,
    check_deadline,
    check_geography,
    check_farm_type,
    check_operator_type,
    check_acreage,
]


def check_eligibility(
    profile: FarmProfile,
    grant: GrantRecord,
    today: Optional[date] = None,
) -> EligibilityResult:
    """Run the hard filters in order and stop at the first failure."""
    today = today or date.today()
    for hard_filter in HARD_FILTERS:
        result = hard_filter(profile, grant, today)
        if not result.passes:
            return result
    return PASS


@dataclass(frozen=True)
class FilterReport:
    eligible: List[GrantRecord]
    considered: int
    excluded_by_reason: Dict[str, int]


def explain_filter(
    profile: FarmProfile,
    snapshot: CatalogSnapshot,
    today: Optional[date] = None,
) -> FilterReport:
    """Filter a snapshot and count exclusions by reason."""
    today = today or date.today()
    eligible: List[GrantRecord] = []
    excluded: Dict[str, int] = {}

    for grant in snapshot:
        result = check_eligibility(profile, grant, today)
        if result.passes:
            eligible.append(grant)
        else:
            excluded[result.reason] = excluded.get(result.reason, 0) + 1

    return FilterReport(eligible=eligible, considered=len(snapshot), excluded_by_reason=excluded)


def filter_grants(
    profile: FarmProfile,
    snapshot: CatalogSnapshot,
    today: Optional[date] = None,
) -> List[GrantRecord]:
    """Grants in the snapshot that pass every hard constraint, in snapshot order."""
    return explain_filter(profile, snapshot, today).eligible


def describe_filters(profile: FarmProfile) -> List[str]:
    return [
        "Status: open",
        "Deadline: upcoming or rolling",
        f"State: {profile.state}",
        f"Farm type: {profile.farm_type.value}",
        f"Operator type: {profile.operator_type.value}",
        f"Acreage: {profile.acres_band.value}",
    ]
