"""
Catalog store schema and connection management.

Uses SQLite with SQLAlchemy. The matching engine only reads this table;
populating it belongs to the ingestion side.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class Grant(Base):
    """Grant catalog row."""

    __tablename__ = "grants"

    id = Column(String, primary_key=True)
    source_id = Column(String, nullable=True)  # usda_nrcs, ca_state, manual
    title = Column(String, nullable=False)
    status = Column(String, nullable=False, default="draft")  # open, closed, draft
    states = Column(JSON, nullable=False, default=list)  # ["CA", "OR"] or ["*"]
    farm_types = Column(JSON, nullable=False, default=list)
    operator_types = Column(JSON, nullable=False, default=list)
    goals = Column(JSON, nullable=False, default=list)
    counties = Column(JSON, nullable=False, default=list)
    acres_min = Column(Float, nullable=True)
    acres_max = Column(Float, nullable=True)
    employees_min = Column(Integer, nullable=True)
    employees_max = Column(Integer, nullable=True)
    funding_min = Column(Float, nullable=True)
    funding_max = Column(Float, nullable=True)
    deadline = Column(Date, nullable=True)
    rolling = Column(Boolean, nullable=False, default=False)
    agency = Column(String, nullable=True)
    summary = Column(Text, nullable=True)
    url = Column(String, nullable=True)
    requirements = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def grant_to_dict(grant: Grant) -> Dict[str, Any]:
    """Convert a catalog row into the entry format parse_grant accepts."""
    return {
        "id": grant.id,
        "source_id": grant.source_id,
        "title": grant.title,
        "status": grant.status,
        "states": grant.states,
        "farm_types": grant.farm_types,
        "operator_types": grant.operator_types,
        "goals": grant.goals,
        "counties": grant.counties,
        "acres_min": grant.acres_min,
        "acres_max": grant.acres_max,
        "employees_min": grant.employees_min,
        "employees_max": grant.employees_max,
        "funding_min": grant.funding_min,
        "funding_max": grant.funding_max,
        "deadline": grant.deadline,
        "deadline_type": "rolling" if grant.rolling else "fixed",
        "agency": grant.agency,
        "summary": grant.summary,
        "url": grant.url,
        "requirements": grant.requirements,
    }


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()
