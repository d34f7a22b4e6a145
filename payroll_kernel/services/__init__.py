"""Kernel services: sequences, audit trail, record store, read-side adapters."""

from payroll_kernel.services.attendance_source import (
    AttendanceSource,
    SqlAttendanceSource,
    StaticAttendanceSource,
)
from payroll_kernel.services.audit_trail import AuditQuery, AuditSummary, AuditTrail
from payroll_kernel.services.employee_directory import EmployeeDirectory, SqlEmployeeDirectory
from payroll_kernel.services.record_store import PayrollRecordStore, SqlPayrollRecordStore
from payroll_kernel.services.sequence_service import SequenceService

__all__ = [
    "AttendanceSource",
    "AuditQuery",
    "AuditSummary",
    "AuditTrail",
    "EmployeeDirectory",
    "PayrollRecordStore",
    "SequenceService",
    "SqlAttendanceSource",
    "SqlEmployeeDirectory",
    "SqlPayrollRecordStore",
    "StaticAttendanceSource",
]
