"""
Tests for catalog entry validation and parsing.
"""

from datetime import date

import pytest

from grantmatch.errors import MalformedRecord
from grantmatch.models import DeadlineType, FarmType, FundingGoal, GrantStatus, OperatorType, STATE_WILDCARD
from grantmatch.schema import parse_grant, validate_grant


class TestValidateGrant:
    """Test non-raising validation."""

    def test_valid_entry(self, grant_entry):
        """Valid entry should have no errors."""
        assert validate_grant(grant_entry) == []

    def test_missing_required_field(self, grant_entry):
        """Missing title should error."""
        del grant_entry["title"]
        errors = validate_grant(grant_entry)
        assert any("title" in err.lower() for err in errors)

    def test_unknown_status(self, grant_entry):
        grant_entry["status"] = "archived"
        errors = validate_grant(grant_entry)
        assert any("status" in err.lower() for err in errors)

    def test_missing_states(self, grant_entry):
        """A grant must say where it applies."""
        grant_entry["states"] = []
        errors = validate_grant(grant_entry)
        assert any("states" in err.lower() for err in errors)

    def test_invalid_url(self, grant_entry):
        grant_entry["url"] = "not-a-url"
        errors = validate_grant(grant_entry)
        assert any("url" in err.lower() for err in errors)

    def test_inverted_range(self, grant_entry):
        grant_entry["acres_min"] = 500
        grant_entry["acres_max"] = 100
        errors = validate_grant(grant_entry)
        assert any("acres_min" in err for err in errors)

    def test_negative_number(self, grant_entry):
        grant_entry["employees_max"] = -1
        errors = validate_grant(grant_entry)
        assert any("employees_max" in err for err in errors)

    @pytest.mark.parametrize(
        "key,value",
        [
            ("employees_min", "nan"),
            ("employees_max", float("inf")),
            ("acres_max", "nan"),
            ("funding_max", "-inf"),
        ],
    )
    def test_non_finite_number(self, grant_entry, key, value):
        grant_entry[key] = value
        errors = validate_grant(grant_entry)
        assert f"Field '{key}' must be a finite number" in errors

    def test_non_finite_number_raises_malformed(self, grant_entry):
        grant_entry["employees_max"] = float("inf")
        with pytest.raises(MalformedRecord):
            parse_grant(grant_entry)

    def test_bad_deadline(self, grant_entry):
        grant_entry["deadline"] = "next spring"
        errors = validate_grant(grant_entry)
        assert any("deadline" in err.lower() for err in errors)

    def test_unknown_farm_type_rejected(self, grant_entry):
        """Restrictive sets must not silently lose members."""
        grant_entry["farm_types"] = ["aquaculture"]
        errors = validate_grant(grant_entry)
        assert any("farm_types" in err for err in errors)

    def test_non_object_entry(self):
        assert validate_grant(["not", "a", "dict"]) != []


class TestParseGrant:
    """Test parsing into GrantRecord."""

    def test_parse_valid_entry(self, grant_entry):
        record = parse_grant(grant_entry)
        assert record.id == "usda-eqip-001"
        assert record.status == GrantStatus.OPEN
        assert record.states == frozenset({STATE_WILDCARD})
        assert record.operator_types == frozenset({OperatorType.INDIVIDUAL, OperatorType.SMALL_BUSINESS})
        assert FundingGoal.EQUIPMENT in record.goals
        assert record.deadline_type == DeadlineType.ROLLING
        assert record.requirements == ("Work with local NRCS office",)

    def test_unknown_fields_ignored(self, grant_entry):
        """Newer store fields must not break parsing."""
        grant_entry["qualityScore"] = 98
        grant_entry["eligibilityConfidence"] = "high"
        assert parse_grant(grant_entry).id == "usda-eqip-001"

    def test_malformed_raises(self, grant_entry):
        grant_entry["status"] = "unknown"
        with pytest.raises(MalformedRecord) as excinfo:
            parse_grant(grant_entry)
        assert excinfo.value.grant_id == "usda-eqip-001"
        assert excinfo.value.errors

    def test_national_scope_becomes_wildcard(self, grant_entry):
        grant_entry["states"] = []
        grant_entry["geography_scope"] = "national"
        assert parse_grant(grant_entry).is_statewide_wildcard

    def test_state_codes_normalized(self, grant_entry):
        grant_entry["states"] = [" ca", "Or"]
        assert parse_grant(grant_entry).states == frozenset({"CA", "OR"})

    def test_legacy_rolling_status(self, grant_entry):
        """Status 'rolling' from older entries means open with a rolling deadline."""
        grant_entry["status"] = "rolling"
        grant_entry["deadline_type"] = None
        record = parse_grant(grant_entry)
        assert record.status == GrantStatus.OPEN
        assert record.is_rolling

    def test_deadline_parsing(self, grant_entry):
        grant_entry["deadline"] = "2026-04-15T00:00:00Z"
        grant_entry["deadline_type"] = "fixed"
        assert parse_grant(grant_entry).deadline == date(2026, 4, 15)

    def test_farm_type_synonyms(self, grant_entry):
        grant_entry["farm_types"] = ["Livestock", "orchard"]
        assert parse_grant(grant_entry).farm_types == frozenset({FarmType.CATTLE, FarmType.ORCHARD})

    def test_unknown_goals_dropped(self, grant_entry):
        """Goals only affect scoring, so unknown tags are ignored."""
        grant_entry["goals"] = ["equipment", "space_travel"]
        assert parse_grant(grant_entry).goals == frozenset({FundingGoal.EQUIPMENT})

    def test_counties_normalized(self, grant_entry):
        grant_entry["counties"] = ["Fresno County", "TULARE"]
        assert parse_grant(grant_entry).counties == frozenset({"fresno", "tulare"})
