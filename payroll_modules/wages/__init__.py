"""
Weekly Wages Module (``payroll_modules.wages``).

Responsibility
--------------
Weekly wage payroll for hourly and daily employees: attendance-driven
calculation, manual adjustments, processing and approval, annual bonus
and severance, rate changes and the weekly summary.

Architecture position
---------------------
**Modules layer** -- ``AdjustmentLedger`` and ``WagePayrollService``
delegate arithmetic to ``payroll_engines`` and persistence/audit to
``payroll_kernel``.  The value objects live in
``payroll_kernel.domain.dtos`` and are re-exported here.

Failure modes
-------------
All failures are ``PayrollKernelError`` subclasses with a stable ``code``
(see ``payroll_kernel.exceptions``).
"""

from payroll_kernel.domain.dtos import (
    Adjustment,
    AdjustmentCategory,
    AdjustmentRequest,
    AdjustmentType,
    AttendanceTotals,
    Employee,
    PayrollRecord,
    RateConfiguration,
    SalaryType,
    WeekRange,
)
from payroll_modules.wages.ledger import AdjustmentLedger
from payroll_modules.wages.service import WagePayrollService, WeeklyPayrollSummary

__all__ = [
    "Adjustment",
    "AdjustmentCategory",
    "AdjustmentLedger",
    "AdjustmentRequest",
    "AdjustmentType",
    "AttendanceTotals",
    "Employee",
    "PayrollRecord",
    "RateConfiguration",
    "SalaryType",
    "WagePayrollService",
    "WeekRange",
    "WeeklyPayrollSummary",
]
