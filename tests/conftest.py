"""
Pytest configuration and shared fixtures.
"""

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest

from grantmatch.catalog import CatalogLoader
from grantmatch.database import Grant, get_session, init_database
from grantmatch.logger import StructuredLogger, reset_logger
from grantmatch.models import (
    AcresBand,
    FarmProfile,
    FarmType,
    FundingGoal,
    GrantRecord,
    GrantStatus,
    OperatorType,
)

TODAY = date(2026, 3, 1)
LOADED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class StaticSource:
    """In-memory catalog source; set `error` to simulate an outage."""

    name = "static"

    def __init__(self, entries: List[Dict[str, Any]]):
        self.entries = entries
        self.error = None
        self.calls = 0

    def describe(self) -> str:
        return "static"

    def fetch(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.entries)


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path, monkeypatch):
    """Keep the global logger and its log files inside each test."""
    monkeypatch.setenv("GRANTMATCH_LOG_DIR", str(tmp_path / "logs"))
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def quiet_logger() -> StructuredLogger:
    """Logger with no handlers so tests stay silent."""
    return StructuredLogger(name="grantmatch-test", enable_file=False, enable_console=False)


@pytest.fixture
def orchard_profile() -> FarmProfile:
    """California orchard operator looking for equipment money."""
    return FarmProfile(
        id="profile-1",
        user_id="user-1",
        state="CA",
        county="fresno",
        farm_type=FarmType.ORCHARD,
        acres_band=AcresBand.FROM_50_TO_100,
        operator_type=OperatorType.INDIVIDUAL,
        employee_count=3,
        goals=frozenset({FundingGoal.EQUIPMENT}),
    )


@pytest.fixture
def make_grant():
    """Factory for open, CA-eligible grants; override any field by keyword."""

    def _make(grant_id: str = "grant-1", **overrides) -> GrantRecord:
        fields = {
            "id": grant_id,
            "title": f"Grant {grant_id}",
            "status": GrantStatus.OPEN,
            "states": frozenset({"CA"}),
        }
        fields.update(overrides)
        return GrantRecord(**fields)

    return _make


@pytest.fixture
def grant_entry() -> Dict[str, Any]:
    """Valid raw catalog entry as the store hands it over."""
    return {
        "id": "usda-eqip-001",
        "source_id": "usda_nrcs",
        "title": "Environmental Quality Incentives Program (EQIP)",
        "status": "open",
        "states": ["*"],
        "farm_types": [],
        "operator_types": ["individual", "small_business"],
        "goals": ["irrigation", "conservation", "equipment"],
        "funding_min": 1500,
        "funding_max": 450000,
        "deadline": None,
        "deadline_type": "rolling",
        "agency": "USDA Natural Resources Conservation Service",
        "summary": "Cost-share for conservation practices.",
        "url": "https://www.nrcs.usda.gov/programs-initiatives/eqip",
        "requirements": ["Work with local NRCS office"],
    }


@pytest.fixture
def catalog_entries(grant_entry) -> List[Dict[str, Any]]:
    """Small mixed catalog: two good entries, one closed, one malformed."""
    return [
        grant_entry,
        {
            "id": "ca-orchard-002",
            "title": "California Orchard Equipment Grant",
            "status": "open",
            "states": ["CA"],
            "farm_types": ["orchard", "mixed"],
            "goals": ["equipment", "irrigation"],
            "deadline": "2026-03-20",
            "url": "https://example.org/ca-orchard",
        },
        {
            "id": "tx-closed-003",
            "title": "Texas Ranch Fencing Grant",
            "status": "closed",
            "states": ["TX"],
            "goals": ["cattle"],
        },
        {
            "id": "broken-004",
            "status": "open",
            "states": ["CA"],
        },
    ]


@pytest.fixture
def static_source(catalog_entries) -> StaticSource:
    return StaticSource(catalog_entries)


@pytest.fixture
def loader(static_source, quiet_logger) -> CatalogLoader:
    return CatalogLoader(static_source, logger=quiet_logger, clock=lambda: LOADED_AT)


@pytest.fixture
def loaded_loader(loader) -> CatalogLoader:
    loader.load()
    return loader


@pytest.fixture
def catalog_db(tmp_path) -> Path:
    """SQLite catalog with a national, a state and a draft grant."""
    db_path = tmp_path / "grants.db"
    init_database(db_path)
    session = get_session(db_path)
    session.add_all([
        Grant(
            id="usda-microloan-001",
            source_id="usda_fsa",
            title="FSA Farm Operating Microloans",
            status="open",
            states=["*"],
            operator_types=["individual", "small_business"],
            goals=["equipment", "operating"],
            funding_max=50000,
            rolling=True,
            url="https://www.fsa.usda.gov/microloans",
        ),
        Grant(
            id="ca-swep-002",
            source_id="ca_state",
            title="State Water Efficiency and Enhancement Program",
            status="open",
            states=["CA"],
            goals=["irrigation", "conservation"],
            counties=["Fresno", "Tulare"],
            deadline=date(2026, 4, 15),
            requirements=["Requires 25% matching funds"],
        ),
        Grant(
            id="draft-003",
            title="Upcoming Program",
            status="draft",
            states=["CA"],
        ),
    ])
    session.commit()
    session.close()
    return db_path


@pytest.fixture
def catalog_file(tmp_path, catalog_entries) -> Path:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({"grants": catalog_entries}))
    return path
