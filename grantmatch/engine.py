"""
Matching engine facade.

Ties the loader's current snapshot to the filter, scorer and ranker. Each
call captures one snapshot at the start and uses it throughout, so a reload
running in parallel never mixes two catalogs into one response.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import List, Optional

from .config import Settings
from .eligibility import check_eligibility, describe_filters, explain_filter
from .errors import InvalidOptions, InvalidProfile, NoSnapshotLoaded
from .logger import StructuredLogger, get_logger
from .models import FarmProfile, FilterSummary, GrantRecord, MatchOptions, MatchResponse, MatchResult
from .profile import validate_profile
from .ranking import rank
from .scoring import DEFAULT_WEIGHTS, Scorer, ScoringWeights

DEADLINE_WARNING_DAYS = 30
BELOW_MIN_SCORE = "Below minimum score"


@dataclass(frozen=True)
class GrantDetail:
    grant: GrantRecord
    match: MatchResult
    eligible: bool


def grant_warnings(profile: FarmProfile, grant: GrantRecord, today: date) -> List[str]:
    """Things the operator should verify before applying."""
    warnings: List[str] = []

    if grant.deadline is not None and not grant.is_rolling:
        days_until = (grant.deadline - today).days
        if 0 <= days_until <= DEADLINE_WARNING_DAYS:
            warnings.append(f"Deadline in {days_until} days" if days_until else "Deadline is today")

    if any("matching" in requirement.lower() for requirement in grant.requirements):
        warnings.append("May require matching funds")

    if grant.employees_max is not None and profile.employee_count > grant.employees_max:
        warnings.append(f"Program lists {grant.employees_max} or fewer employees")
    if grant.employees_min is not None and profile.employee_count < grant.employees_min:
        warnings.append(f"Program lists at least {grant.employees_min} employees")

    return warnings


class MatchingEngine:
    """
    Stateless apart from the injected loader; safe to share across threads.
    """

    def __init__(
        self,
        loader,
        settings: Optional[Settings] = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        logger: Optional[StructuredLogger] = None,
    ):
        self.loader = loader
        self.settings = settings or Settings()
        self.scorer = Scorer(weights)
        self.logger = logger or get_logger()

    def resolve_options(self, limit: Optional[int] = None, min_score: Optional[int] = None) -> MatchOptions:
        """
        Apply configured defaults and the configured maximum limit.

        Raises:
            InvalidOptions: If limit is not positive or min_score is outside 0-100
        """
        if limit is None:
            limit = self.settings.default_limit
        if min_score is None:
            min_score = self.settings.default_min_score

        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidOptions(f"limit must be a positive integer (got {limit!r})")
        if isinstance(min_score, bool) or not isinstance(min_score, int) or not 0 <= min_score <= 100:
            raise InvalidOptions(f"min_score must be an integer between 0 and 100 (got {min_score!r})")

        return MatchOptions(limit=min(limit, self.settings.max_limit), min_score=min_score)

    def score(self, profile: FarmProfile, grant: GrantRecord, today: date) -> MatchResult:
        breakdown = self.scorer.score_grant(profile, grant)
        return MatchResult(
            grant_id=grant.id,
            score=breakdown.score,
            dimensions=breakdown.dimensions,
            grant=grant,
            reasons=breakdown.reasons,
            warnings=tuple(grant_warnings(profile, grant, today)),
        )

    def match(
        self,
        profile: FarmProfile,
        limit: Optional[int] = None,
        min_score: Optional[int] = None,
        today: Optional[date] = None,
    ) -> MatchResponse:
        """
        Rank the current catalog for one farm profile.

        Raises:
            InvalidProfile: If the profile violates its invariants
            InvalidOptions: If limit or min_score are out of range
            NoSnapshotLoaded: If no catalog load has succeeded yet
        """
        try:
            validate_profile(profile)
            options = self.resolve_options(limit, min_score)
        except (InvalidProfile, InvalidOptions) as e:
            self.logger.record_error(type(e).__name__)
            self.logger.warning("Match request rejected", profile_id=profile.id, error=str(e))
            raise

        snapshot = self.loader.current()
        if not snapshot.is_loaded:
            self.logger.record_error(NoSnapshotLoaded.__name__)
            raise NoSnapshotLoaded("Grant catalog has not been loaded yet")

        today = today or date.today()
        report = explain_filter(profile, snapshot, today)
        scored = [self.score(profile, grant, today) for grant in report.eligible]
        response = rank(scored, options.min_score, options.limit)

        excluded = dict(report.excluded_by_reason)
        below_cutoff = len(scored) - response.total_matches
        if below_cutoff:
            excluded[BELOW_MIN_SCORE] = below_cutoff

        response = replace(
            response,
            options=options,
            filters=FilterSummary(
                applied_filters=tuple(describe_filters(profile)),
                grants_before_filter=report.considered,
                grants_after_filter=len(report.eligible),
                excluded_by_reason=excluded,
            ),
            snapshot_loaded_at=snapshot.loaded_at,
        )

        self.logger.record_match_request(len(response.results))
        self.logger.debug(
            "Match request served",
            profile_id=profile.id,
            considered=report.considered,
            eligible=len(report.eligible),
            total_matches=response.total_matches,
            returned=len(response.results),
        )
        return response

    def grant_detail(
        self,
        grant_id: str,
        profile: FarmProfile,
        today: Optional[date] = None,
    ) -> Optional[GrantDetail]:
        """
        One grant scored for one profile, or None if the id is unknown.

        Ineligible grants come back with score 0 and the exclusion reason as
        their only warning.

        Raises:
            InvalidProfile: If the profile violates its invariants
            NoSnapshotLoaded: If no catalog load has succeeded yet
        """
        validate_profile(profile)
        snapshot = self.loader.current()
        if not snapshot.is_loaded:
            raise NoSnapshotLoaded("Grant catalog has not been loaded yet")

        grant = snapshot.get(grant_id)
        if grant is None:
            return None

        today = today or date.today()
        eligibility = check_eligibility(profile, grant, today)
        if eligibility.passes:
            return GrantDetail(grant=grant, match=self.score(profile, grant, today), eligible=True)

        return GrantDetail(
            grant=grant,
            match=MatchResult(
                grant_id=grant.id,
                score=0,
                dimensions=(),
                grant=grant,
                warnings=(eligibility.reason,),
            ),
            eligible=False,
        )
