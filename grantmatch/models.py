"""
Typed records shared by the loader, filter, scorer and ranker.

Everything here is immutable: profiles are rebuilt per request, grant
records live inside a snapshot that is replaced wholesale on reload.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

STATE_WILDCARD = "*"


class FarmType(str, Enum):
    CROP = "crop"
    CATTLE = "cattle"
    ORCHARD = "orchard"
    SPECIALTY = "specialty"
    MIXED = "mixed"


class AcresBand(str, Enum):
    UNDER_50 = "under_50"
    FROM_50_TO_100 = "50_100"
    FROM_100_TO_500 = "100_500"
    FROM_500_TO_1000 = "500_1000"
    OVER_1000 = "over_1000"

    @property
    def midpoint(self) -> float:
        """Representative acreage used against grant acreage ranges."""
        return _ACRES_MIDPOINTS[self]


# over_1000 has no upper bound; 1500 stands in for it
_ACRES_MIDPOINTS = {
    AcresBand.UNDER_50: 25.0,
    AcresBand.FROM_50_TO_100: 75.0,
    AcresBand.FROM_100_TO_500: 300.0,
    AcresBand.FROM_500_TO_1000: 750.0,
    AcresBand.OVER_1000: 1500.0,
}


class OperatorType(str, Enum):
    INDIVIDUAL = "individual"
    SMALL_BUSINESS = "small_business"
    COOPERATIVE = "cooperative"


class FundingGoal(str, Enum):
    IRRIGATION = "irrigation"
    EQUIPMENT = "equipment"
    LAND_DEVELOPMENT = "land_development"
    CATTLE = "cattle"
    CONSERVATION = "conservation"
    OPERATING = "operating"


class GrantStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    DRAFT = "draft"


class DeadlineType(str, Enum):
    FIXED = "fixed"
    ROLLING = "rolling"


@dataclass(frozen=True)
class FarmProfile:
    """A farm operator's profile, used as the matching query."""

    id: str
    user_id: str
    state: str
    farm_type: FarmType
    acres_band: AcresBand
    operator_type: OperatorType
    employee_count: int
    goals: FrozenSet[FundingGoal]
    county: Optional[str] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class GrantRecord:
    """A funding opportunity with its eligibility criteria."""

    id: str
    title: str
    status: GrantStatus
    states: FrozenSet[str]
    source_id: Optional[str] = None
    farm_types: FrozenSet[FarmType] = frozenset()
    operator_types: FrozenSet[OperatorType] = frozenset()
    goals: FrozenSet[FundingGoal] = frozenset()
    counties: FrozenSet[str] = frozenset()
    acres_min: Optional[float] = None
    acres_max: Optional[float] = None
    employees_min: Optional[int] = None
    employees_max: Optional[int] = None
    funding_min: Optional[float] = None
    funding_max: Optional[float] = None
    deadline: Optional[date] = None
    deadline_type: DeadlineType = DeadlineType.FIXED
    agency: str = ""
    summary: str = ""
    url: str = ""
    requirements: Tuple[str, ...] = ()

    @property
    def is_rolling(self) -> bool:
        return self.deadline_type == DeadlineType.ROLLING

    @property
    def is_statewide_wildcard(self) -> bool:
        return STATE_WILDCARD in self.states

    @property
    def has_acreage_range(self) -> bool:
        return self.acres_min is not None or self.acres_max is not None

    @property
    def has_employee_range(self) -> bool:
        return self.employees_min is not None or self.employees_max is not None


@dataclass(frozen=True)
class MatchResult:
    """One ranked grant for a profile."""

    grant_id: str
    score: int
    dimensions: Tuple[str, ...]
    grant: GrantRecord
    reasons: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchOptions:
    limit: int
    min_score: int


@dataclass(frozen=True)
class FilterSummary:
    """What the eligibility pass did for one request."""

    applied_filters: Tuple[str, ...] = ()
    grants_before_filter: int = 0
    grants_after_filter: int = 0
    excluded_by_reason: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MatchResponse:
    results: Tuple[MatchResult, ...]
    total_matches: int
    options: MatchOptions
    filters: FilterSummary = field(default_factory=FilterSummary)
    snapshot_loaded_at: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not self.results


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable point-in-time view of the grant catalog."""

    grants: Mapping[str, GrantRecord]
    loaded_at: Optional[datetime] = None
    skipped: int = 0

    @classmethod
    def build(
        cls,
        records: List[GrantRecord],
        loaded_at: datetime,
        skipped: int = 0,
    ) -> "CatalogSnapshot":
        by_id: Dict[str, GrantRecord] = {record.id: record for record in records}
        return cls(grants=MappingProxyType(by_id), loaded_at=loaded_at, skipped=skipped)

    @property
    def count(self) -> int:
        return len(self.grants)

    @property
    def is_loaded(self) -> bool:
        return self.loaded_at is not None

    def get(self, grant_id: str) -> Optional[GrantRecord]:
        return self.grants.get(grant_id)

    def __iter__(self):
        return iter(self.grants.values())

    def __len__(self) -> int:
        return len(self.grants)


EMPTY_SNAPSHOT = CatalogSnapshot(grants=MappingProxyType({}))
