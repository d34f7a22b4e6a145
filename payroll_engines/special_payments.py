"""
payroll_engines.special_payments -- Annual bonus, severance and settlement.

Responsibility:
    Pure formulas for the payments made outside the weekly cycle:

    annual bonus (aguinaldo)
        daily_salary * 15 * days_worked / 365
    severance
        daily_salary * SEVERANCE_DAYS[reason]   (90 / 20 / 30 default)
    settlement (finiquito)
        pending_days * daily_salary
        + vacation_days * daily_salary * (1 + vacation_bonus_pct)
        + proportional_aguinaldo

    plus the salary conversions used when building employee profiles.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Auditing each payment is
    the caller's job (WagePayrollService).

Invariants enforced:
    - daily_salary must be > 0 for bonus, severance and settlement.
    - days_worked above 365 is not clamped; the bonus then exceeds the
      15-day baseline.  A warning is logged so the case is visible.
    - Results rounded to 2 places, ROUND_HALF_UP.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payroll_kernel.db.types import round_money, to_decimal
from payroll_kernel.exceptions import (
    InvalidAttendanceError,
    InvalidRateError,
    InvalidSalaryError,
)
from payroll_kernel.logging_config import get_logger
from payroll_engines.tracer import traced_engine
from payroll_engines.weekly_pay import HOURS_PER_DAY

logger = get_logger("engines.special_payments")

ANNUAL_BONUS_DAYS = Decimal("15")
DAYS_PER_YEAR = 365
DAYS_PER_MONTH = 30
DEFAULT_VACATION_BONUS_PCT = Decimal("0.25")


class TerminationReason(str, Enum):
    WITHOUT_CAUSE = "without_cause"
    VOLUNTARY = "voluntary"
    MUTUAL_AGREEMENT = "mutual_agreement"
    WITH_CAUSE = "with_cause"
    OTHER = "other"


SEVERANCE_DAYS: dict[TerminationReason, int] = {
    TerminationReason.WITHOUT_CAUSE: 90,
    TerminationReason.VOLUNTARY: 20,
}
DEFAULT_SEVERANCE_DAYS = 30


def severance_days_for(reason: TerminationReason | str) -> int:
    """Days of salary owed for a termination reason; unknown text gets the default."""
    try:
        reason = TerminationReason(reason)
    except ValueError:
        return DEFAULT_SEVERANCE_DAYS
    return SEVERANCE_DAYS.get(reason, DEFAULT_SEVERANCE_DAYS)


@dataclass(frozen=True)
class SettlementBreakdown:
    """Final settlement components for a departing employee."""

    daily_salary: Decimal
    pending_days: Decimal
    vacation_days: Decimal
    vacation_bonus_pct: Decimal
    proportional_aguinaldo: Decimal
    pending_pay: Decimal
    vacation_pay: Decimal
    vacation_bonus: Decimal
    total: Decimal


def _positive_salary(daily_salary: Decimal | int | str) -> Decimal:
    value = to_decimal(daily_salary, "daily_salary")
    if not value.is_finite() or value <= 0:
        raise InvalidSalaryError(str(daily_salary))
    return value


def _non_negative(value: Decimal | int | str, field_name: str) -> Decimal:
    amount = to_decimal(value, field_name)
    if not amount.is_finite() or amount < 0:
        raise InvalidAttendanceError(field_name, str(value))
    return amount


class SpecialPaymentCalculator:
    """Stateless calculator for out-of-cycle payments."""

    @traced_engine(
        "special_payments", "1.0",
        fingerprint_fields=("daily_salary", "days_worked"),
    )
    def calculate_annual_bonus(
        self,
        daily_salary: Decimal,
        days_worked: int = DAYS_PER_YEAR,
    ) -> Decimal:
        salary = _positive_salary(daily_salary)
        days = _non_negative(days_worked, "days_worked")
        if days > DAYS_PER_YEAR:
            logger.warning(
                "annual_bonus_days_above_year",
                extra={"days_worked": str(days), "daily_salary": str(salary)},
            )
        return round_money(salary * ANNUAL_BONUS_DAYS * days / DAYS_PER_YEAR)

    @traced_engine(
        "special_payments", "1.0",
        fingerprint_fields=("daily_salary", "termination_reason"),
    )
    def calculate_severance(
        self,
        daily_salary: Decimal,
        termination_reason: TerminationReason | str,
    ) -> Decimal:
        salary = _positive_salary(daily_salary)
        return round_money(salary * severance_days_for(termination_reason))

    @traced_engine(
        "special_payments", "1.0",
        fingerprint_fields=("daily_salary", "pending_days", "vacation_days"),
    )
    def calculate_settlement(
        self,
        daily_salary: Decimal,
        pending_days: Decimal | int = 0,
        vacation_days: Decimal | int = 0,
        vacation_bonus_pct: Decimal = DEFAULT_VACATION_BONUS_PCT,
        proportional_aguinaldo: Decimal = Decimal("0"),
    ) -> SettlementBreakdown:
        salary = _positive_salary(daily_salary)
        pending = _non_negative(pending_days, "pending_days")
        vacation = _non_negative(vacation_days, "vacation_days")
        bonus_pct = to_decimal(vacation_bonus_pct, "vacation_bonus_pct")
        if not bonus_pct.is_finite() or bonus_pct < 0:
            raise InvalidRateError("vacation_bonus_pct", str(bonus_pct))
        aguinaldo = to_decimal(proportional_aguinaldo, "proportional_aguinaldo")

        pending_pay = pending * salary
        vacation_pay = vacation * salary
        vacation_bonus = vacation_pay * bonus_pct
        total = pending_pay + vacation_pay + vacation_bonus + aguinaldo

        return SettlementBreakdown(
            daily_salary=salary,
            pending_days=pending,
            vacation_days=vacation,
            vacation_bonus_pct=bonus_pct,
            proportional_aguinaldo=round_money(aguinaldo),
            pending_pay=round_money(pending_pay),
            vacation_pay=round_money(vacation_pay),
            vacation_bonus=round_money(vacation_bonus),
            total=round_money(total),
        )


def daily_salary_from_hourly(
    hourly_rate: Decimal | int | str,
    hours_per_day: Decimal | int = HOURS_PER_DAY,
) -> Decimal:
    rate = to_decimal(hourly_rate, "hourly_rate")
    if not rate.is_finite() or rate < 0:
        raise InvalidRateError("hourly_rate", str(hourly_rate))
    return round_money(rate * to_decimal(hours_per_day, "hours_per_day"))


def monthly_salary_from_daily(
    daily_salary: Decimal | int | str,
    days_per_month: int = DAYS_PER_MONTH,
) -> Decimal:
    salary = to_decimal(daily_salary, "daily_salary")
    if not salary.is_finite() or salary < 0:
        raise InvalidSalaryError(str(daily_salary))
    return round_money(salary * days_per_month)


_default_calculator = SpecialPaymentCalculator()


def calculate_annual_bonus(daily_salary: Decimal, days_worked: int = DAYS_PER_YEAR) -> Decimal:
    return _default_calculator.calculate_annual_bonus(
        daily_salary=daily_salary, days_worked=days_worked,
    )


def calculate_severance(daily_salary: Decimal, termination_reason: TerminationReason | str) -> Decimal:
    return _default_calculator.calculate_severance(
        daily_salary=daily_salary, termination_reason=termination_reason,
    )
