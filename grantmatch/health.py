"""
Health Reporter.

Read-only view of catalog freshness for monitoring probes. Nothing here
triggers a reload.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import CatalogSnapshot, GrantStatus

NEVER_LOADED = "never"


@dataclass(frozen=True)
class HealthReport:
    count: int
    last_loaded: Optional[datetime]

    @property
    def is_loaded(self) -> bool:
        return self.last_loaded is not None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "lastLoaded": self.last_loaded.isoformat() if self.last_loaded else NEVER_LOADED,
        }


def snapshot_health(snapshot: CatalogSnapshot) -> HealthReport:
    return HealthReport(count=snapshot.count, last_loaded=snapshot.loaded_at)


def health(loader) -> HealthReport:
    """Size and load time of the loader's current snapshot."""
    return snapshot_health(loader.current())


def catalog_coverage(snapshot: CatalogSnapshot) -> Dict[str, Any]:
    """
    Open grants per state and the goal tags they fund.

    Wildcard grants are counted under NATIONAL instead of every state.
    """
    by_state: Dict[str, int] = {}
    goals = set()
    for grant in snapshot:
        if grant.status != GrantStatus.OPEN:
            continue
        goals.update(goal.value for goal in grant.goals)
        if grant.is_statewide_wildcard:
            by_state["NATIONAL"] = by_state.get("NATIONAL", 0) + 1
            continue
        for state in grant.states:
            by_state[state] = by_state.get(state, 0) + 1

    states: List[str] = sorted(s for s in by_state if s != "NATIONAL")
    return {
        "byState": dict(sorted(by_state.items())),
        "statesWithGrants": states,
        "nationalGrants": by_state.get("NATIONAL", 0),
        "goals": sorted(goals),
    }
