"""
payroll_engines.weekly_pay -- Pre-adjustment weekly wage calculation.

Responsibility:
    Compute base pay, overtime rate and overtime pay for one employee-week
    from attendance totals, the employee's pay profile and the rate
    configuration.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by WagePayrollService and BulkPayrollProcessor, which fold
    adjustments and persist the result.

Formulas:
    daily:   base_pay      = worked_days * daily_salary
             overtime_rate = daily_salary / HOURS_PER_DAY * overtime_multiplier
    hourly:  rate          = employee.hourly_rate, else rates.regular_rate
             base_pay      = regular_hours * rate
             overtime_rate = rate * overtime_multiplier
    both:    overtime_pay  = overtime_hours * overtime_rate
             gross_pay     = base_pay + overtime_pay   (pre-adjustment)

Invariants enforced:
    - Decimal-only arithmetic.  Products are computed exactly; each reported
      amount is rounded once (2 places, ROUND_HALF_UP), overtime_rate is
      reported with 4 places.  gross_pay is the sum of the rounded parts.
    - Nothing is ever clamped or defaulted to zero: bad input raises.

Failure modes:
    - InvalidRateError: a multiplier or the applicable salary/rate that is
      not a finite positive number.
    - InvalidAttendanceError: negative or non-integral worked_days, negative
      hours, or non-Decimal hour values.
    - MissingRateError: hourly with no resolvable rate; daily with no
      daily_salary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from payroll_kernel.db.types import round_money, round_rate
from payroll_kernel.domain.dtos import (
    AttendanceTotals,
    Employee,
    PayrollRecord,
    RateConfiguration,
    SalaryType,
    WeekRange,
)
from payroll_kernel.exceptions import (
    InvalidAttendanceError,
    InvalidRateError,
    MissingRateError,
)
from payroll_kernel.logging_config import get_logger
from payroll_engines.adjustments import AdjustmentFold
from payroll_engines.tracer import traced_engine

logger = get_logger("engines.weekly_pay")

HOURS_PER_DAY = Decimal("8")

_MULTIPLIERS = ("overtime_multiplier", "night_differential", "holiday_premium")


@dataclass(frozen=True)
class WeeklyPayCalculation:
    """
    Pre-adjustment result for one employee-week.

    ``gross_pay`` here excludes adjustments; the final figures come from
    folding the adjustment ledger (see payroll_engines.adjustments).
    """

    employee_id: str
    week: WeekRange
    salary_type: SalaryType
    worked_days: int
    regular_hours: Decimal
    overtime_hours: Decimal
    base_pay: Decimal
    overtime_rate: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal

    def to_record(
        self,
        fold: AdjustmentFold,
        calculated_by: str,
        calculated_at: datetime,
    ) -> PayrollRecord:
        """Combine with a ledger fold into a storable PayrollRecord."""
        return PayrollRecord(
            employee_id=self.employee_id,
            week_start=self.week.start,
            week_end=self.week.end,
            salary_type=self.salary_type,
            worked_days=self.worked_days,
            regular_hours=self.regular_hours,
            overtime_hours=self.overtime_hours,
            base_pay=self.base_pay,
            overtime_rate=self.overtime_rate,
            overtime_pay=self.overtime_pay,
            bonuses=fold.total_bonuses,
            deductions=fold.total_deductions,
            gross_pay=fold.gross_pay,
            net_pay=fold.net_pay,
            calculated_by=calculated_by,
            calculated_at=calculated_at,
        )


def _hours(value: object, field_name: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
        raise InvalidAttendanceError(field_name, repr(value), "must be a Decimal")
    hours = Decimal(value)
    if not hours.is_finite() or hours < 0:
        raise InvalidAttendanceError(field_name, str(value))
    return hours


def _days(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidAttendanceError("worked_days", repr(value), "must be an integer")
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise InvalidAttendanceError("worked_days", str(value), "must be a whole number")
        value = int(value)
    if not isinstance(value, int):
        raise InvalidAttendanceError("worked_days", repr(value), "must be an integer")
    if value < 0:
        raise InvalidAttendanceError("worked_days", str(value))
    return value


def _validate_multipliers(rates: RateConfiguration) -> None:
    for name in _MULTIPLIERS:
        value = getattr(rates, name)
        if not value.is_finite() or value <= 0:
            raise InvalidRateError(name, str(value))
    if rates.regular_rate is not None and not (
        rates.regular_rate.is_finite() and rates.regular_rate > 0
    ):
        raise InvalidRateError("regular_rate", str(rates.regular_rate))


class WeeklyPayrollCalculator:
    """
    Pure function calculator for weekly wages.

    Contract:
        No I/O, no database access, fully deterministic.  Calling
        ``calculate`` twice with the same inputs returns equal results.

    Non-goals:
        - Does not apply night differential or holiday premium.
        - Does not fold adjustments or persist anything.
    """

    @traced_engine(
        "weekly_pay", "1.0",
        fingerprint_fields=("employee", "week", "attendance", "rates"),
    )
    def calculate(
        self,
        employee: Employee,
        week: WeekRange,
        attendance: AttendanceTotals,
        rates: RateConfiguration,
    ) -> WeeklyPayCalculation:
        _validate_multipliers(rates)

        worked_days = _days(attendance.worked_days)
        regular_hours = _hours(attendance.regular_hours, "regular_hours")
        overtime_hours = _hours(attendance.overtime_hours, "overtime_hours")

        if employee.salary_type is SalaryType.DAILY:
            if employee.daily_salary is None:
                raise MissingRateError(employee.id, SalaryType.DAILY.value)
            if not employee.daily_salary.is_finite() or employee.daily_salary <= 0:
                raise InvalidRateError("daily_salary", str(employee.daily_salary))
            base = worked_days * employee.daily_salary
            overtime_rate = employee.daily_salary / HOURS_PER_DAY * rates.overtime_multiplier
        else:
            rate = employee.hourly_rate
            rate_name = "hourly_rate"
            if rate is None:
                rate = rates.regular_rate
                rate_name = "regular_rate"
            if rate is None:
                raise MissingRateError(employee.id, SalaryType.HOURLY.value)
            if not rate.is_finite() or rate <= 0:
                raise InvalidRateError(rate_name, str(rate))
            base = regular_hours * rate
            overtime_rate = rate * rates.overtime_multiplier

        base_pay = round_money(base)
        overtime_pay = round_money(overtime_hours * overtime_rate)

        return WeeklyPayCalculation(
            employee_id=employee.id,
            week=week,
            salary_type=employee.salary_type,
            worked_days=worked_days,
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
            base_pay=base_pay,
            overtime_rate=round_rate(overtime_rate),
            overtime_pay=overtime_pay,
            gross_pay=base_pay + overtime_pay,
        )
