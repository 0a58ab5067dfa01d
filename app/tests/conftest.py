"""
Pytest configuration and fixtures
"""
import os
from datetime import timedelta

# Settings are read at import time; pin them before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["SCHEDULE_TIMEZONE"] = "America/Mexico_City"
os.environ["APP_ENV"] = "local"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from app.main import app
from app.db.base import Base
from app.db.init_db import seed_reference_data
from app.core.deps import get_db
from app import constants
from app.models.disciplinary import DisciplinaryActionType, DisciplinaryTriggerType, SanctionStatus
from app.utils.datetime_utils import now_utc

# Import all models to ensure they're registered with Base.metadata
from app.models import (
    Employee,
    AuditLog,
    AttendanceLog,
    TardinessRule,
    TardinessAccumulation,
    TardinessEvent,
    DisciplinaryActionRule,
    EmployeeDisciplinaryRecord,
)  # noqa


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def rules(db):
    """Seed the reference tardiness and disciplinary rules"""
    seed_reference_data(db)
    return {
        "tardiness": {r.code: r for r in db.query(TardinessRule).all()},
        "disciplinary": {r.code: r for r in db.query(DisciplinaryActionRule).all()},
    }


@pytest.fixture
def make_employee(db):
    """Factory creating employees with an optional schedule"""
    counter = {"n": 0}

    def _make(scheduled_start_time=None, grace_period_minutes=None, active=True):
        counter["n"] += 1
        employee = Employee(
            emp_code=f"EMP{counter['n']:03d}",
            name=f"Test Employee {counter['n']}",
            active=active,
            scheduled_start_time=scheduled_start_time,
            grace_period_minutes=grace_period_minutes,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def employee(make_employee):
    """Employee scheduled at 08:00 with no grace period"""
    return make_employee(scheduled_start_time="08:00", grace_period_minutes=0)


@pytest.fixture
def add_record(db, rules):
    """Create a disciplinary record applied `days_ago` days ago, bypassing the engine"""
    five_tardies = rules["disciplinary"][constants.DISCIPLINARY_RULE_FIVE_TARDIES]

    def _add(
        employee,
        status=SanctionStatus.PENDING,
        days_ago=1,
        action_type=DisciplinaryActionType.ADMINISTRATIVE_ACT,
    ):
        record = EmployeeDisciplinaryRecord(
            employee_id=employee.id,
            rule_id=five_tardies.id,
            action_type=action_type,
            trigger_type=DisciplinaryTriggerType.FORMAL_TARDIES,
            trigger_count=5,
            description="Administrative act",
            applied_date=now_utc() - timedelta(days=days_ago),
            suspension_days=1,
            status=status,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    return _add
