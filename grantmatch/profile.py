"""
Farm profile construction from upstream profile data.

The profile store hands over a row (id, user id, state, timestamps) plus a
loosely-typed JSON attribute bag written by onboarding. build_profile turns
both into a fully-typed FarmProfile with documented defaults; validate_profile
then checks the invariants the engine relies on.
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .errors import InvalidProfile
from .models import AcresBand, FarmProfile, FarmType, FundingGoal, OperatorType
from .normalize import (
    normalize_acres_band,
    normalize_county,
    normalize_farm_type,
    normalize_goals,
    normalize_operator_type,
    normalize_state,
)

DEFAULT_EMPLOYEE_COUNT = 1
STATE_CODE = re.compile(r"^[A-Z]{2}$")


def parse_attributes(attributes: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    """Decode the attribute bag; anything unreadable counts as empty."""
    if attributes is None:
        return {}
    if isinstance(attributes, dict):
        return attributes
    try:
        decoded = json.loads(attributes or "{}")
    except (TypeError, ValueError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _parse_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def build_profile(
    record: Dict[str, Any],
    attributes: Union[str, Dict[str, Any], None] = None,
) -> FarmProfile:
    """
    Build a FarmProfile from a profile row and its attribute bag.

    Defaults for missing or unknown values:
        farm_type -> mixed, acres_band -> 50_100, operator_type -> individual,
        goals -> {equipment}, employee_count -> 1, version -> 1.

    Raises:
        InvalidProfile: If the result still violates profile invariants
    """
    attrs = parse_attributes(attributes if attributes is not None else record.get("attributes"))

    goals = attrs.get("goals")
    if isinstance(goals, str):
        goals = [g for g in goals.split(",") if g.strip()]

    profile = FarmProfile(
        id=str(record.get("id") or ""),
        user_id=str(record.get("user_id") or ""),
        state=normalize_state(attrs.get("state") or record.get("state")),
        county=normalize_county(attrs.get("county") or record.get("county")),
        farm_type=normalize_farm_type(attrs.get("farm_type", attrs.get("farmType"))),
        acres_band=normalize_acres_band(attrs.get("acres_band", attrs.get("acresBand"))),
        operator_type=normalize_operator_type(attrs.get("operator_type", attrs.get("operatorType"))),
        employee_count=_parse_int(
            attrs.get("employee_count", attrs.get("employeeCount")), DEFAULT_EMPLOYEE_COUNT
        ),
        goals=normalize_goals(goals),
        version=_parse_int(attrs.get("version", record.get("version")), 1),
        created_at=_parse_timestamp(record.get("created_at")),
        updated_at=_parse_timestamp(record.get("updated_at")),
    )
    validate_profile(profile)
    return profile


def profile_errors(profile: FarmProfile) -> List[str]:
    errors: List[str] = []
    if not STATE_CODE.match(profile.state or ""):
        errors.append(f"state must be a two-letter code (got {profile.state!r})")
    if not isinstance(profile.farm_type, FarmType):
        errors.append(f"farm_type must be a FarmType (got {profile.farm_type!r})")
    if not isinstance(profile.acres_band, AcresBand):
        errors.append(f"acres_band must be an AcresBand (got {profile.acres_band!r})")
    if not isinstance(profile.operator_type, OperatorType):
        errors.append(f"operator_type must be an OperatorType (got {profile.operator_type!r})")
    if isinstance(profile.employee_count, bool) or not isinstance(profile.employee_count, int):
        errors.append("employee_count must be an integer")
    elif profile.employee_count < 0:
        errors.append("employee_count must not be negative")
    if not profile.goals:
        errors.append("goals must not be empty")
    elif not all(isinstance(goal, FundingGoal) for goal in profile.goals):
        errors.append("goals must contain only FundingGoal values")
    return errors


def validate_profile(profile: FarmProfile) -> None:
    """
    Raises:
        InvalidProfile: If any enum or range invariant does not hold
    """
    errors = profile_errors(profile)
    if errors:
        raise InvalidProfile(f"Invalid farm profile {profile.id!r}: {'; '.join(errors)}", errors=errors)
