# tests/conftest.py
import os
import tempfile
import uuid
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Point the application at a throwaway SQLite file before any backend module
# builds its engine from settings.
_DB_DIR = Path(tempfile.mkdtemp(prefix="labor-forecast-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from models.craft_type_model import CraftType
from models.headcount_forecast_model import HeadcountForecast
from models.labor_actual_model import LaborActual

# Wednesday; the Sunday before it is 2025-08-03 and the one after is 2025-08-10.
TODAY = date(2025, 8, 6)


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def project_id():
    return uuid.uuid4()


@pytest.fixture
def crafts(db):
    """Seed a small catalog keyed by craft code."""
    rows = [
        CraftType(name="Carpenter", code="CARP", category="direct"),
        CraftType(name="Electrician", code="ELEC", category="direct"),
        CraftType(name="Foreman", code="FORE", category="indirect"),
        CraftType(name="Superintendent", code="SUPT", category="staff"),
        CraftType(name="Boilermaker", code="BOIL", category="direct", is_active=False),
    ]
    db.add_all(rows)
    db.commit()
    return {row.code: row for row in rows}


@pytest.fixture
def add_actual(db):
    """Insert one weekly actual row keyed by its Sunday week ending."""

    def _add(project_id, craft, week_ending, hours, cost):
        db.add(
            LaborActual(
                project_id=project_id,
                craft_type_id=craft.id,
                week_ending=week_ending,
                total_hours=Decimal(str(hours)),
                total_cost=Decimal(str(cost)),
            )
        )
        db.commit()

    return _add


@pytest.fixture
def add_headcount(db):
    """Insert planned headcount the way it is stored: against the Tuesday week start."""

    def _add(project_id, craft, week_ending, headcount):
        db.add(
            HeadcountForecast(
                project_id=project_id,
                craft_type_id=craft.id,
                week_starting=week_ending - timedelta(days=5),
                headcount=headcount,
            )
        )
        db.commit()

    return _add


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
