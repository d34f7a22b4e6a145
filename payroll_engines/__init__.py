"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the pure payroll calculators.  This
    is the import surface for payroll_modules and payroll_batch.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel (domain values, exceptions, logging)
    and sibling engine modules.  MUST NOT import payroll_modules or
    payroll_batch.

Invariants enforced:
    - Purity: engines never read the clock.  Timestamps are passed in.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE records.
"""

from payroll_engines.adjustments import AdjustmentFold, fold_adjustments
from payroll_engines.special_payments import (
    DEFAULT_SEVERANCE_DAYS,
    SEVERANCE_DAYS,
    SettlementBreakdown,
    SpecialPaymentCalculator,
    TerminationReason,
    calculate_annual_bonus,
    calculate_severance,
    daily_salary_from_hourly,
    monthly_salary_from_daily,
    severance_days_for,
)
from payroll_engines.weekly_pay import (
    HOURS_PER_DAY,
    WeeklyPayCalculation,
    WeeklyPayrollCalculator,
)

__all__ = [
    "AdjustmentFold",
    "DEFAULT_SEVERANCE_DAYS",
    "HOURS_PER_DAY",
    "SEVERANCE_DAYS",
    "SettlementBreakdown",
    "SpecialPaymentCalculator",
    "TerminationReason",
    "WeeklyPayCalculation",
    "WeeklyPayrollCalculator",
    "calculate_annual_bonus",
    "calculate_severance",
    "daily_salary_from_hourly",
    "fold_adjustments",
    "monthly_salary_from_daily",
    "severance_days_for",
]
