from typing import Iterable, Optional, Set

from .models import (
    STATE_WILDCARD,
    AcresBand,
    FarmType,
    FundingGoal,
    OperatorType,
)

DEFAULT_FARM_TYPE = FarmType.MIXED
DEFAULT_ACRES_BAND = AcresBand.FROM_50_TO_100
DEFAULT_OPERATOR_TYPE = OperatorType.INDIVIDUAL
DEFAULT_GOALS = frozenset({FundingGoal.EQUIPMENT})


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def _token(value) -> str:
    # "Small Business" / "small-business" / "small_business" all compare equal
    return normalize_text(str(value)).replace("-", "_").replace(" ", "_")


# Legacy values written by older onboarding flows
FARM_TYPE_SYNS = {
    "livestock": FarmType.CATTLE,
    "ranch": FarmType.CATTLE,
    "beef": FarmType.CATTLE,
    "row_crop": FarmType.CROP,
    "grain": FarmType.CROP,
    "fruit": FarmType.ORCHARD,
    "nut": FarmType.ORCHARD,
    "vineyard": FarmType.SPECIALTY,
    "nursery": FarmType.SPECIALTY,
    "vegetable": FarmType.SPECIALTY,
}
OPERATOR_TYPE_SYNS = {
    "sole_proprietor": OperatorType.INDIVIDUAL,
    "family": OperatorType.INDIVIDUAL,
    "llc": OperatorType.SMALL_BUSINESS,
    "business": OperatorType.SMALL_BUSINESS,
    "for_profit": OperatorType.SMALL_BUSINESS,
    "co_op": OperatorType.COOPERATIVE,
    "coop": OperatorType.COOPERATIVE,
}
ACRES_BAND_SYNS = {
    "0_50": AcresBand.UNDER_50,
    "lt_50": AcresBand.UNDER_50,
    "1000_plus": AcresBand.OVER_1000,
    "1000+": AcresBand.OVER_1000,
}
GOAL_SYNS = {
    "water": FundingGoal.IRRIGATION,
    "livestock": FundingGoal.CATTLE,
    "land": FundingGoal.LAND_DEVELOPMENT,
    "working_capital": FundingGoal.OPERATING,
    "soil_health": FundingGoal.CONSERVATION,
    "machinery": FundingGoal.EQUIPMENT,
}
WILDCARD_SYNS = {STATE_WILDCARD, "ALL", "NATIONAL", "NATIONWIDE", "US"}


def _lookup(enum_cls, synonyms, value):
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    token = _token(value)
    try:
        return enum_cls(token)
    except ValueError:
        return synonyms.get(token)


def parse_farm_type(value) -> Optional[FarmType]:
    """Return the FarmType for value, or None when it is not recognised."""
    return _lookup(FarmType, FARM_TYPE_SYNS, value)


def parse_operator_type(value) -> Optional[OperatorType]:
    return _lookup(OperatorType, OPERATOR_TYPE_SYNS, value)


def parse_acres_band(value) -> Optional[AcresBand]:
    return _lookup(AcresBand, ACRES_BAND_SYNS, value)


def parse_goal(value) -> Optional[FundingGoal]:
    return _lookup(FundingGoal, GOAL_SYNS, value)


def normalize_farm_type(value) -> FarmType:
    return parse_farm_type(value) or DEFAULT_FARM_TYPE


def normalize_operator_type(value) -> OperatorType:
    return parse_operator_type(value) or DEFAULT_OPERATOR_TYPE


def normalize_acres_band(value) -> AcresBand:
    return parse_acres_band(value) or DEFAULT_ACRES_BAND


def normalize_goals(values: Optional[Iterable]) -> frozenset:
    """Drop unknown goals; an empty result falls back to DEFAULT_GOALS."""
    goals: Set[FundingGoal] = set()
    for raw in values or []:
        goal = parse_goal(raw)
        if goal is not None:
            goals.add(goal)
    return frozenset(goals) if goals else DEFAULT_GOALS


def normalize_state(value) -> str:
    state = str(value or "").strip().upper()
    if state in WILDCARD_SYNS:
        return STATE_WILDCARD
    return state


def normalize_county(value) -> Optional[str]:
    if value is None:
        return None
    county = normalize_text(str(value))
    if county.endswith(" county"):
        county = county[: -len(" county")].strip()
    return county or None
