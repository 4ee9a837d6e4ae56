"""
Catalog entry validation and parsing.

Entries come from an external store whose format keeps evolving, so parsing
is forward-compatible: unknown keys are ignored, known keys are checked.
"""

import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .errors import MalformedRecord
from .models import DeadlineType, GrantRecord, GrantStatus
from .normalize import (
    normalize_county,
    normalize_state,
    parse_farm_type,
    parse_goal,
    parse_operator_type,
)

REQUIRED_STR_FIELDS = ["id", "title"]
OPTIONAL_STR_FIELDS = [
    "source_id",
    "agency",
    "summary",
    "url",
]
RANGE_FIELDS = [
    ("acres_min", "acres_max"),
    ("employees_min", "employees_max"),
    ("funding_min", "funding_max"),
]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except Exception:
        return False


def _as_list(value: Any) -> Optional[list]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return None


def _parse_number(data: Dict[str, Any], key: str, errors: List[str]) -> Optional[float]:
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        errors.append(f"Field '{key}' must be a number")
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors.append(f"Field '{key}' must be a number")
        return None
    if not math.isfinite(number):
        errors.append(f"Field '{key}' must be a finite number")
        return None
    if number < 0:
        errors.append(f"Field '{key}' must not be negative")
        return None
    return number


def _parse_deadline(value: Any, errors: List[str]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    errors.append("Field 'deadline' must be an ISO date (YYYY-MM-DD)")
    return None


def _parse_members(data: Dict[str, Any], key: str, parser, errors: List[str], strict: bool) -> frozenset:
    raw = _as_list(data.get(key))
    if raw is None:
        errors.append(f"Field '{key}' must be a list")
        return frozenset()
    members = set()
    for value in raw:
        member = parser(value)
        if member is not None:
            members.add(member)
        elif strict:
            errors.append(f"Field '{key}' has unknown value: {value!r}")
    return frozenset(members)


def _parse_states(data: Dict[str, Any], errors: List[str]) -> frozenset:
    raw = _as_list(data.get("states"))
    if raw is None:
        errors.append("Field 'states' must be a list")
        return frozenset()
    if str(data.get("geography_scope", "")).lower() == "national":
        raw = raw + ["*"]
    states = frozenset(s for s in (normalize_state(v) for v in raw) if s)
    if not states:
        errors.append("Missing required field: states (use '*' for all states)")
    return states


def _parse(data: Dict[str, Any]) -> Tuple[Optional[GrantRecord], List[str]]:
    errors: List[str] = []

    if not isinstance(data, dict):
        return None, ["Grant entry must be an object"]

    for f in REQUIRED_STR_FIELDS:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    if isinstance(data.get("url"), str) and data["url"].strip():
        if not _valid_url(data["url"]):
            errors.append("Field 'url' must be a valid absolute URL (scheme + host)")

    # Older catalog entries used status "rolling" for open, undated programs
    raw_status = str(data.get("status", "")).strip().lower()
    deadline_type = str(data.get("deadline_type") or DeadlineType.FIXED.value).strip().lower()
    if raw_status == "rolling":
        raw_status = GrantStatus.OPEN.value
        deadline_type = DeadlineType.ROLLING.value
    try:
        status = GrantStatus(raw_status)
    except ValueError:
        errors.append(f"Field 'status' must be one of: open, closed, draft (got {data.get('status')!r})")
        status = None
    try:
        deadline_kind = DeadlineType(deadline_type)
    except ValueError:
        errors.append(f"Field 'deadline_type' must be 'fixed' or 'rolling' (got {deadline_type!r})")
        deadline_kind = DeadlineType.FIXED

    states = _parse_states(data, errors)
    farm_types = _parse_members(data, "farm_types", parse_farm_type, errors, strict=True)
    operator_types = _parse_members(data, "operator_types", parse_operator_type, errors, strict=True)
    goals = _parse_members(data, "goals", parse_goal, errors, strict=False)
    counties = _parse_members(data, "counties", normalize_county, errors, strict=False)

    bounds: Dict[str, Optional[float]] = {}
    for low_key, high_key in RANGE_FIELDS:
        low = _parse_number(data, low_key, errors)
        high = _parse_number(data, high_key, errors)
        if low is not None and high is not None and low > high:
            errors.append(f"Field '{low_key}' must not exceed '{high_key}'")
        bounds[low_key] = low
        bounds[high_key] = high

    deadline = _parse_deadline(data.get("deadline"), errors)

    requirements = _as_list(data.get("requirements"))
    if requirements is None or not all(isinstance(r, str) for r in requirements):
        errors.append("Field 'requirements' must be a list of strings")
        requirements = []

    if errors:
        return None, errors

    record = GrantRecord(
        id=data["id"].strip(),
        source_id=data.get("source_id"),
        title=data["title"].strip(),
        status=status,
        states=states,
        farm_types=farm_types,
        operator_types=operator_types,
        goals=goals,
        counties=counties,
        acres_min=bounds["acres_min"],
        acres_max=bounds["acres_max"],
        employees_min=None if bounds["employees_min"] is None else int(bounds["employees_min"]),
        employees_max=None if bounds["employees_max"] is None else int(bounds["employees_max"]),
        funding_min=bounds["funding_min"],
        funding_max=bounds["funding_max"],
        deadline=deadline,
        deadline_type=deadline_kind,
        agency=data.get("agency") or "",
        summary=data.get("summary") or "",
        url=data.get("url") or "",
        requirements=tuple(requirements),
    )
    return record, []


def validate_grant(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    _, errors = _parse(data)
    return errors


def parse_grant(data: Dict[str, Any]) -> GrantRecord:
    """
    Parse one catalog entry into a GrantRecord.

    Raises:
        MalformedRecord: If the entry fails validation
    """
    record, errors = _parse(data)
    if record is None:
        grant_id = data.get("id") if isinstance(data, dict) else None
        raise MalformedRecord(
            f"Malformed grant record {grant_id!r}: {'; '.join(errors)}",
            grant_id=grant_id,
            errors=errors,
        )
    return record
