"""
AttendanceSource -- weekly attendance totals for the calculator.

Responsibility:
    Aggregates daily attendance rows into one AttendanceTotals per
    employee-week.  A day counts as worked when it has a clock-in or
    positive total hours; hours are summed.  No rows means zero totals.

Architecture position:
    Kernel > Services.  ``AttendanceSource`` is the Protocol;
    ``SqlAttendanceSource`` reads the ``attendance_records`` table and
    ``StaticAttendanceSource`` serves fixed totals (imports, tests).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from payroll_kernel.domain.dtos import AttendanceTotals, WeekRange
from payroll_kernel.exceptions import StoreError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.employee import AttendanceRecord

logger = get_logger("services.attendance")


@runtime_checkable
class AttendanceSource(Protocol):
    def totals_for(self, employee_id: str, week: WeekRange) -> AttendanceTotals: ...


class SqlAttendanceSource:
    """Attendance totals aggregated from daily ``attendance_records`` rows."""

    def __init__(self, session: Session):
        self._session = session

    def totals_for(self, employee_id: str, week: WeekRange) -> AttendanceTotals:
        try:
            rows = self._session.execute(
                select(AttendanceRecord)
                .where(
                    AttendanceRecord.employee_id == employee_id,
                    AttendanceRecord.work_date >= week.start,
                    AttendanceRecord.work_date <= week.end,
                )
                .order_by(AttendanceRecord.work_date)
            ).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("attendance_totals", str(exc)) from exc

        worked_days = 0
        regular_hours = Decimal("0")
        overtime_hours = Decimal("0")
        for row in rows:
            total = row.total_hours or Decimal("0")
            if row.clock_in is not None or total > 0:
                worked_days += 1
            regular_hours += total
            overtime_hours += row.overtime_hours or Decimal("0")

        logger.debug(
            "attendance_aggregated",
            extra={
                "employee_id": employee_id,
                "week_start": week.start.isoformat(),
                "rows": len(rows),
                "worked_days": worked_days,
            },
        )
        return AttendanceTotals(
            worked_days=worked_days,
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
        )


class StaticAttendanceSource:
    """Serves pre-aggregated totals by employee id; unknown ids get zeros."""

    def __init__(self, totals: Mapping[str, AttendanceTotals] | None = None):
        self._totals = dict(totals or {})

    def set_totals(self, employee_id: str, totals: AttendanceTotals) -> None:
        self._totals[employee_id] = totals

    def totals_for(self, employee_id: str, week: WeekRange) -> AttendanceTotals:
        return self._totals.get(employee_id, AttendanceTotals.zero())
