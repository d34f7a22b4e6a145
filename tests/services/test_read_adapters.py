"""
Tests for the read-side adapters and sequence allocation.

Covers:
- SqlAttendanceSource aggregation of daily rows
- StaticAttendanceSource defaults
- SqlEmployeeDirectory lookups
- SequenceService monotonicity
"""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from payroll_kernel.domain.dtos import AttendanceTotals, SalaryType
from payroll_kernel.exceptions import EmployeeNotFoundError
from payroll_kernel.services.attendance_source import (
    AttendanceSource,
    SqlAttendanceSource,
    StaticAttendanceSource,
)
from payroll_kernel.services.employee_directory import SqlEmployeeDirectory
from payroll_kernel.services.sequence_service import SequenceService


class TestSqlAttendanceSource:

    def test_aggregates_week(self, session, add_attendance, week):
        add_attendance("E1", date(2026, 1, 5), Decimal("8"), Decimal("2"))
        add_attendance("E1", date(2026, 1, 6), Decimal("8"))
        add_attendance("E1", date(2026, 1, 7), Decimal("7.5"), Decimal("1.5"))

        totals = SqlAttendanceSource(session).totals_for("E1", week)

        assert totals.worked_days == 3
        assert totals.regular_hours == Decimal("23.5")
        assert totals.overtime_hours == Decimal("3.5")

    def test_rows_outside_week_ignored(self, session, add_attendance, week):
        add_attendance("E1", date(2026, 1, 4))
        add_attendance("E1", date(2026, 1, 11))
        add_attendance("E1", date(2026, 1, 12))

        totals = SqlAttendanceSource(session).totals_for("E1", week)

        assert totals.worked_days == 1

    def test_clock_in_without_hours_counts_as_worked(self, session, add_attendance, week):
        add_attendance(
            "E1", date(2026, 1, 5), Decimal("0"),
            clock_in=datetime(2026, 1, 5, 8, 0, tzinfo=UTC),
        )
        add_attendance("E1", date(2026, 1, 6), Decimal("0"))

        totals = SqlAttendanceSource(session).totals_for("E1", week)

        assert totals.worked_days == 1

    def test_no_rows_is_zero(self, session, week):
        totals = SqlAttendanceSource(session).totals_for("E1", week)

        assert totals.is_empty

    def test_other_employees_ignored(self, session, add_attendance, week):
        add_attendance("E2", date(2026, 1, 5))

        assert SqlAttendanceSource(session).totals_for("E1", week).is_empty

    def test_satisfies_protocol(self, session):
        assert isinstance(SqlAttendanceSource(session), AttendanceSource)


class TestStaticAttendanceSource:

    def test_unknown_employee_gets_zeros(self, week):
        source = StaticAttendanceSource({"E1": AttendanceTotals(worked_days=5)})

        assert source.totals_for("E1", week).worked_days == 5
        assert source.totals_for("E2", week) == AttendanceTotals.zero()

    def test_set_totals(self, week):
        source = StaticAttendanceSource()
        source.set_totals("E1", AttendanceTotals(worked_days=2))

        assert source.totals_for("E1", week).worked_days == 2


class TestSqlEmployeeDirectory:

    def test_get(self, session, add_employee):
        add_employee("E1", "daily", daily_salary=Decimal("300"), full_name="Ana")

        employee = SqlEmployeeDirectory(session).get("E1")

        assert employee.salary_type is SalaryType.DAILY
        assert employee.daily_salary == Decimal("300")
        assert employee.full_name == "Ana"

    def test_missing(self, session):
        with pytest.raises(EmployeeNotFoundError) as exc_info:
            SqlEmployeeDirectory(session).get("ghost")

        assert exc_info.value.code == "EMPLOYEE_NOT_FOUND"
        assert exc_info.value.employee_id == "ghost"


class TestSequenceService:

    def test_monotonic_per_name(self, session):
        sequence = SequenceService(session)

        values = [sequence.next_value(SequenceService.AUDIT_ENTRY) for _ in range(3)]

        assert values == [1, 2, 3]
        assert sequence.next_value(SequenceService.ADJUSTMENT) == 1
        assert sequence.current_value(SequenceService.AUDIT_ENTRY) == 3

    def test_unknown_sequence_has_no_value(self, session):
        assert SequenceService(session).current_value("never_used") is None
