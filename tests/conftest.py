"""
Pytest fixtures for the payroll engine test suite.

Provides:
- In-memory SQLite sessions with SAVEPOINT support and immutability listeners
- A DeterministicClock
- Kernel services and the wage service wired around one session
- Employee / attendance data helpers
- Structured log capture
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from payroll_kernel.db.base import Base
from payroll_kernel.db.engine import enable_sqlite_savepoints
from payroll_kernel.db.immutability import register_immutability_listeners
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.domain.dtos import RateConfiguration, WeekRange
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_kernel.models import AttendanceRecord, EmployeeProfile
from payroll_kernel.services.attendance_source import StaticAttendanceSource
from payroll_kernel.services.audit_trail import AuditTrail
from payroll_kernel.services.record_store import SqlPayrollRecordStore
from payroll_modules.wages.ledger import AdjustmentLedger
from payroll_modules.wages.service import WagePayrollService

ACTOR = "admin@example.com"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, wage_service):
            wage_service.calculate_weekly(...)
            logs = captured_logs()
            assert any(r["message"] == "payroll_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = enable_sqlite_savepoints(create_engine("sqlite:///:memory:"))
    Base.metadata.create_all(eng)
    register_immutability_listeners()
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine) -> Session:
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    sess = factory()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine shared by several threads."""
    eng = create_engine(
        f"sqlite:///{tmp_path / 'payroll.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    enable_sqlite_savepoints(eng, immediate=True)
    Base.metadata.create_all(eng)
    register_immutability_listeners()
    yield eng
    eng.dispose()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


# =============================================================================
# Data helpers
# =============================================================================


@pytest.fixture
def add_employee(session):
    """Insert an employee profile; returns the employee id."""

    def _add(
        employee_id: str,
        salary_type: str = "daily",
        daily_salary: Decimal | None = None,
        hourly_rate: Decimal | None = None,
        full_name: str | None = None,
    ) -> str:
        session.add(EmployeeProfile(
            employee_id=employee_id,
            full_name=full_name or f"Worker {employee_id}",
            salary_type=salary_type,
            daily_salary=daily_salary,
            hourly_rate=hourly_rate,
        ))
        session.flush()
        return employee_id

    return _add


@pytest.fixture
def add_attendance(session):
    """Insert one daily attendance row."""

    def _add(
        employee_id: str,
        work_date: date,
        total_hours: Decimal = Decimal("8"),
        overtime_hours: Decimal = Decimal("0"),
        clock_in=None,
    ) -> None:
        session.add(AttendanceRecord(
            employee_id=employee_id,
            work_date=work_date,
            clock_in=clock_in,
            total_hours=total_hours,
            overtime_hours=overtime_hours,
        ))
        session.flush()

    return _add


@pytest.fixture
def attendance() -> StaticAttendanceSource:
    """Pre-aggregated attendance served to the wage service."""
    return StaticAttendanceSource()


@pytest.fixture
def actor() -> str:
    return ACTOR


@pytest.fixture
def week() -> WeekRange:
    """Monday 2026-01-05 .. Sunday 2026-01-11."""
    return WeekRange(date(2026, 1, 5), date(2026, 1, 11))


@pytest.fixture
def rates() -> RateConfiguration:
    return RateConfiguration(overtime_multiplier=Decimal("1.5"))


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def auditor(session, clock) -> AuditTrail:
    return AuditTrail(session, clock)


@pytest.fixture
def record_store(session, clock) -> SqlPayrollRecordStore:
    return SqlPayrollRecordStore(session, clock)


@pytest.fixture
def ledger(session, auditor, clock) -> AdjustmentLedger:
    return AdjustmentLedger(session, auditor, clock)


@pytest.fixture
def wage_service(session, clock, attendance) -> WagePayrollService:
    return WagePayrollService.from_session(session, clock=clock, attendance_source=attendance)
