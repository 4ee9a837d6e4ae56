"""Ordering, cutoff and truncation of scored grants."""

from datetime import date
from typing import Iterable, List

from .models import MatchOptions, MatchResponse, MatchResult


def sort_key(result: MatchResult):
    # score desc, nearest deadline first (undated last), then title
    deadline = result.grant.deadline
    return (
        -result.score,
        deadline is None,
        deadline or date.max,
        result.grant.title.casefold(),
    )


def rank(scored: Iterable[MatchResult], min_score: int, limit: int) -> MatchResponse:
    """
    Apply the min_score cutoff (inclusive), order, and truncate to limit.

    total_matches counts everything that survived the cutoff, before limit.
    """
    kept: List[MatchResult] = [result for result in scored if result.score >= min_score]
    ordered = sorted(kept, key=sort_key)
    return MatchResponse(
        results=tuple(ordered[:limit]),
        total_matches=len(ordered),
        options=MatchOptions(limit=limit, min_score=min_score),
    )
