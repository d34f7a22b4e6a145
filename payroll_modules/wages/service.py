"""
Wage Payroll Service (``payroll_modules.wages.service``).

Responsibility
--------------
Single-employee payroll operations: weekly calculation, processing,
approval, annual bonus, severance, rate changes and the weekly summary.
Pure computation is delegated to ``payroll_engines``; persistence to the
kernel record store, ledger and audit trail.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``WagePayrollService`` is the public
entry point used by callers and by ``payroll_batch``.

Invariants enforced
-------------------
* One SAVEPOINT per operation: the record write and its audit entry
  commit or roll back together.  A calculation is never reported as a
  success without its audit entry.
* ``actor`` is always an explicit parameter.
* Does NOT call ``session.commit()``; the caller owns the transaction.

Failure modes
-------------
* ``EmployeeNotFoundError`` -- unknown employee.
* Calculation errors from the engines (``InvalidRateError``,
  ``InvalidAttendanceError``, ``MissingRateError``, ``InvalidSalaryError``).
* ``AlreadyProcessedError`` -- recalculating or reprocessing a processed week.
* ``PayrollNotProcessedError`` -- approving before processing.
* ``AuditAppendError`` / ``StoreError`` -- database failures.

Usage::

    service = WagePayrollService.from_session(session, clock=clock)
    record = service.calculate_weekly(
        "EMP-001", WeekRange.containing(date(2026, 1, 7)), rates, actor="admin",
    )
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from payroll_engines import (
    SpecialPaymentCalculator,
    TerminationReason,
    WeeklyPayrollCalculator,
    daily_salary_from_hourly,
    fold_adjustments,
    severance_days_for,
)
from payroll_engines.weekly_pay import WeeklyPayCalculation
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import (
    Employee,
    PayrollRecord,
    RateConfiguration,
    WeekRange,
)
from payroll_kernel.exceptions import MissingRateError, PayrollNotProcessedError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.services.attendance_source import AttendanceSource, SqlAttendanceSource
from payroll_kernel.services.audit_trail import AuditTrail
from payroll_kernel.services.employee_directory import EmployeeDirectory, SqlEmployeeDirectory
from payroll_kernel.services.record_store import SqlPayrollRecordStore
from payroll_modules.wages.ledger import AdjustmentLedger

logger = get_logger("modules.wages.service")


@dataclass(frozen=True)
class WeeklyPayrollSummary:
    """Totals across all stored records of one week."""

    week_start: date
    record_count: int
    processed_count: int
    approved_count: int
    total_gross: Decimal
    total_net: Decimal


class WagePayrollService:
    """
    Orchestrates weekly wage operations through engines and kernel services.

    Contract
    --------
    * ``calculate_weekly`` upserts and audits; ``preview_weekly`` does
      neither.
    * Special payments are computed by the pure calculator and audited
      here, after each success.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        attendance_source: AttendanceSource,
        employee_directory: EmployeeDirectory,
        record_store: SqlPayrollRecordStore,
        ledger: AdjustmentLedger,
        auditor: AuditTrail,
        calculator: WeeklyPayrollCalculator | None = None,
        special_payments: SpecialPaymentCalculator | None = None,
    ):
        self._session = session
        self._clock = clock
        self._attendance = attendance_source
        self._directory = employee_directory
        self._store = record_store
        self._ledger = ledger
        self._auditor = auditor
        self._calculator = calculator or WeeklyPayrollCalculator()
        self._special = special_payments or SpecialPaymentCalculator()

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock | None = None,
        attendance_source: AttendanceSource | None = None,
        employee_directory: EmployeeDirectory | None = None,
    ) -> WagePayrollService:
        """Wire the SQL-backed kernel services around one session."""
        clock = clock or SystemClock()
        auditor = AuditTrail(session, clock)
        return cls(
            session=session,
            clock=clock,
            attendance_source=attendance_source or SqlAttendanceSource(session),
            employee_directory=employee_directory or SqlEmployeeDirectory(session),
            record_store=SqlPayrollRecordStore(session, clock),
            ledger=AdjustmentLedger(session, auditor, clock),
            auditor=auditor,
        )

    @property
    def ledger(self) -> AdjustmentLedger:
        return self._ledger

    @property
    def auditor(self) -> AuditTrail:
        return self._auditor

    # -------------------------------------------------------------------------
    # Weekly calculation
    # -------------------------------------------------------------------------

    def _compute(
        self,
        employee_id: str,
        week: WeekRange,
        rates: RateConfiguration,
        actor: str,
    ) -> PayrollRecord:
        employee = self._directory.get(employee_id)
        attendance = self._attendance.totals_for(employee_id, week)
        calculation: WeeklyPayCalculation = self._calculator.calculate(
            employee=employee, week=week, attendance=attendance, rates=rates,
        )
        fold = fold_adjustments(
            calculation.gross_pay, self._ledger.list_for(employee_id, week),
        )
        return calculation.to_record(fold, calculated_by=actor, calculated_at=self._clock.now())

    def preview_weekly(
        self,
        employee_id: str,
        week: WeekRange,
        rates: RateConfiguration,
        actor: str,
    ) -> PayrollRecord:
        """Compute the week's record without storing or auditing it."""
        return self._compute(employee_id, week, rates, actor)

    def calculate_weekly(
        self,
        employee_id: str,
        week: WeekRange,
        rates: RateConfiguration,
        actor: str,
    ) -> PayrollRecord:
        """
        Calculate, store and audit one employee-week.

        Recalculation replaces the prior unprocessed values.

        Raises:
            AlreadyProcessedError: The week is already processed.
        """
        with LogContext.bind(employee_id=employee_id, actor_id=actor):
            with self._session.begin_nested():
                record = self._compute(employee_id, week, rates, actor)
                stored = self._store.upsert(record)
                self._auditor.record_payroll_calculated(stored, actor)

            logger.info(
                "payroll_calculated",
                extra={
                    "week_start": week.start.isoformat(),
                    "gross_pay": str(stored.gross_pay),
                    "net_pay": str(stored.net_pay),
                },
            )
        return stored

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def process_payroll(self, employee_id: str, week: WeekRange, actor: str) -> PayrollRecord:
        """
        Finalize a calculated week.

        Adjustments are folded again first, so ones added after the last
        calculation are included in the processed figures.

        Raises:
            RecordNotFoundError: The week was never calculated.
            AlreadyProcessedError: It is already processed.
        """
        with self._session.begin_nested():
            record = self._store.get(employee_id, week.start)
            fold = fold_adjustments(
                record.base_pay + record.overtime_pay,
                self._ledger.list_for(employee_id, week),
            )
            if (fold.total_bonuses, fold.total_deductions) != (record.bonuses, record.deductions):
                record = self._store.upsert(replace(
                    record,
                    bonuses=fold.total_bonuses,
                    deductions=fold.total_deductions,
                    gross_pay=fold.gross_pay,
                    net_pay=fold.net_pay,
                ))
            processed = self._store.mark_processed(record.record_id, actor)
            self._auditor.record_payroll_processed(processed, actor)

        logger.info(
            "payroll_processed",
            extra={
                "employee_id": employee_id,
                "week_start": week.start.isoformat(),
                "net_pay": str(processed.net_pay),
                "processed_by": actor,
            },
        )
        return processed

    def approve_payroll(self, employee_id: str, week: WeekRange, actor: str) -> PayrollRecord:
        """
        Approve a processed week.

        Raises:
            RecordNotFoundError: The week was never calculated.
            PayrollNotProcessedError: It has not been processed yet.
        """
        with self._session.begin_nested():
            record = self._store.get(employee_id, week.start)
            if not record.processed:
                raise PayrollNotProcessedError(str(record.record_id))
            approved = self._store.mark_approved(record.record_id, actor)
            self._auditor.record_payroll_approved(approved, actor)

        logger.info(
            "payroll_approved",
            extra={
                "employee_id": employee_id,
                "week_start": week.start.isoformat(),
                "approved_by": actor,
            },
        )
        return approved

    # -------------------------------------------------------------------------
    # Special payments
    # -------------------------------------------------------------------------

    def _daily_salary(self, employee: Employee) -> Decimal:
        if employee.daily_salary is not None:
            return employee.daily_salary
        if employee.hourly_rate is not None:
            return daily_salary_from_hourly(employee.hourly_rate)
        raise MissingRateError(employee.id, employee.salary_type.value)

    def calculate_annual_bonus(
        self,
        employee_id: str,
        actor: str,
        days_worked: int = 365,
    ) -> Decimal:
        """Annual bonus (aguinaldo) for one employee, audited."""
        employee = self._directory.get(employee_id)
        with self._session.begin_nested():
            amount = self._special.calculate_annual_bonus(
                daily_salary=self._daily_salary(employee), days_worked=days_worked,
            )
            self._auditor.record_annual_bonus(employee_id, amount, days_worked, actor)

        logger.info(
            "annual_bonus_calculated",
            extra={
                "employee_id": employee_id,
                "days_worked": days_worked,
                "amount": str(amount),
            },
        )
        return amount

    def calculate_severance(
        self,
        employee_id: str,
        termination_reason: TerminationReason | str,
        actor: str,
    ) -> Decimal:
        """Severance for one employee, audited."""
        employee = self._directory.get(employee_id)
        reason = (
            termination_reason.value
            if isinstance(termination_reason, TerminationReason)
            else str(termination_reason)
        )
        with self._session.begin_nested():
            amount = self._special.calculate_severance(
                daily_salary=self._daily_salary(employee),
                termination_reason=termination_reason,
            )
            self._auditor.record_severance(
                employee_id, amount, reason, severance_days_for(termination_reason), actor,
            )

        logger.info(
            "severance_calculated",
            extra={"employee_id": employee_id, "reason": reason, "amount": str(amount)},
        )
        return amount

    # -------------------------------------------------------------------------
    # Configuration and reporting
    # -------------------------------------------------------------------------

    def change_rates(
        self,
        old: RateConfiguration,
        new: RateConfiguration,
        actor: str,
    ) -> RateConfiguration:
        """Record a rate configuration change; returns the new configuration."""
        self._auditor.record_rates_modified(old, new, actor)
        logger.info(
            "rates_modified",
            extra={"old": old.to_dict(), "new": new.to_dict(), "modified_by": actor},
        )
        return new

    def summarize_week(self, week: WeekRange) -> WeeklyPayrollSummary:
        records = self._store.list_for_week(week.start)
        return WeeklyPayrollSummary(
            week_start=week.start,
            record_count=len(records),
            processed_count=sum(1 for r in records if r.processed),
            approved_count=sum(1 for r in records if r.approved),
            total_gross=sum((r.gross_pay for r in records), Decimal("0.00")),
            total_net=sum((r.net_pay for r in records), Decimal("0.00")),
        )
