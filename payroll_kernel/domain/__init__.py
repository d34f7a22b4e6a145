"""Pure domain layer: clock and value objects, zero I/O."""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.dtos import (
    Adjustment,
    AdjustmentCategory,
    AdjustmentRequest,
    AdjustmentType,
    AttendanceTotals,
    AuditAction,
    AuditEntry,
    AuditEntryRequest,
    Employee,
    PayrollRecord,
    RateConfiguration,
    SalaryType,
    WeekRange,
)

__all__ = [
    "Adjustment",
    "AdjustmentCategory",
    "AdjustmentRequest",
    "AdjustmentType",
    "AttendanceTotals",
    "AuditAction",
    "AuditEntry",
    "AuditEntryRequest",
    "Clock",
    "DeterministicClock",
    "Employee",
    "PayrollRecord",
    "RateConfiguration",
    "SalaryType",
    "SystemClock",
    "WeekRange",
]
