"""ORM models for the payroll kernel."""

from payroll_kernel.models.adjustment import AdjustmentModel
from payroll_kernel.models.audit_entry import AuditEntryModel
from payroll_kernel.models.employee import AttendanceRecord, EmployeeProfile
from payroll_kernel.models.payroll_record import PayrollRecordModel
from payroll_kernel.models.sequence import SequenceCounter

__all__ = [
    "AdjustmentModel",
    "AttendanceRecord",
    "AuditEntryModel",
    "EmployeeProfile",
    "PayrollRecordModel",
    "SequenceCounter",
]
