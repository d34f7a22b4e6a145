"""
AuditTrail -- append-only, hash-chained record of payroll actions.

Responsibility:
    Appends one immutable AuditEntry per successful payroll action
    (calculation, bulk run, annual bonus, severance, processing, approval,
    adjustment, rate change, export), answers filtered queries, produces
    summaries and validates the hash chain.

Architecture position:
    Kernel > Services -- imperative shell, called by WagePayrollService,
    AdjustmentLedger and BulkPayrollProcessor.

Invariants enforced:
    - seq is allocated via SequenceService (locked counter row).
    - hash = H(action | employee_ref | payload_hash | prev_hash), where
      payload_hash covers the payload plus amount, user, details and
      employee count.  Tampering with any of them is detectable by
      ``validate_chain()``.
    - Append-only: entries are never modified (ORM listeners).  ``purge()``
      is the single, explicit, logged destructive override.

Failure modes:
    - AuditAppendError: the entry could not be written.  Never swallowed;
      callers roll back the action it was recording.
    - AuditChainBrokenError: recomputed hash does not match stored hash,
      or prev_hash does not match the predecessor's hash.

Audit relevance:
    This IS the audit service.  Every append flows through ``append()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Iterable, Iterator
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from payroll_kernel.db.types import round_money
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import (
    AdjustmentType,
    AuditAction,
    AuditEntry,
    AuditEntryRequest,
    PayrollRecord,
    RateConfiguration,
    WeekRange,
)
from payroll_kernel.exceptions import AuditAppendError, AuditChainBrokenError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.audit_entry import AuditEntryModel
from payroll_kernel.services.sequence_service import SequenceService
from payroll_kernel.utils.hashing import hash_audit_entry, hash_payload, to_jsonable

logger = get_logger("services.audit_trail")


@dataclass(frozen=True)
class AuditQuery:
    """
    Filter for AuditTrail.query().

    ``date_from`` / ``date_to`` are inclusive calendar days (UTC).
    Newest first unless ``ascending`` is set.
    """

    action: AuditAction | None = None
    date_from: date | None = None
    date_to: date | None = None
    employee_id: str | None = None
    ascending: bool = False


@dataclass(frozen=True)
class AuditSummary:
    count: int
    total_amount: Decimal
    unique_employees: int
    unique_users: int


def _content_hash(
    payload: dict[str, Any],
    amount: Decimal | None,
    user: str,
    details: str,
    employee_count: int,
) -> str:
    return hash_payload({
        "amount": amount,
        "details": details,
        "employee_count": employee_count,
        "payload": payload,
        "user": user,
    })


def summarize(entries: Iterable[AuditEntry]) -> AuditSummary:
    """Count, amount total and distinct employees / users of ``entries``."""
    count = 0
    total = Decimal("0")
    employees: set[str] = set()
    users: set[str] = set()
    for entry in entries:
        count += 1
        if entry.amount is not None:
            total += entry.amount
        if entry.employee_ref:
            employees.add(entry.employee_ref)
        users.add(entry.user)
    return AuditSummary(
        count=count,
        total_amount=round_money(total),
        unique_employees=len(employees),
        unique_users=len(users),
    )


class AuditTrail:
    """
    Service for appending and validating hash-chained audit entries.

    Guarantees:
        - Every successful ``append()`` leaves exactly one flushed row.
        - A failed append leaves no partial row (own SAVEPOINT) and raises
          AuditAppendError.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    def _get_last_hash(self) -> str | None:
        last = self._session.execute(
            select(AuditEntryModel).order_by(AuditEntryModel.seq.desc()).limit(1)
        ).scalar_one_or_none()
        return last.hash if last else None

    def append(self, request: AuditEntryRequest) -> AuditEntry:
        """
        Append one entry with hash chain linkage.

        Raises:
            AuditAppendError: On any database failure.
        """
        payload = to_jsonable(dict(request.payload))
        amount = round_money(request.amount) if request.amount is not None else None
        try:
            with self._session.begin_nested():
                seq = self._sequence_service.next_value(SequenceService.AUDIT_ENTRY)
                prev_hash = self._get_last_hash()
                payload_hash = _content_hash(
                    payload, amount, request.user, request.details,
                    request.employee_count,
                )
                entry_hash = hash_audit_entry(
                    action=request.action.value,
                    employee_ref=request.employee_ref,
                    payload_hash=payload_hash,
                    prev_hash=prev_hash,
                )
                model = AuditEntryModel(
                    seq=seq,
                    action=request.action.value,
                    employee_ref=request.employee_ref,
                    employee_count=request.employee_count,
                    amount=amount,
                    occurred_at=self._clock.now(),
                    user=request.user,
                    details=request.details,
                    payload=payload,
                    payload_hash=payload_hash,
                    prev_hash=prev_hash,
                    hash=entry_hash,
                )
                self._session.add(model)
                self._session.flush()
        except SQLAlchemyError as exc:
            logger.error(
                "audit_append_failed",
                extra={
                    "action": request.action.value,
                    "employee_ref": request.employee_ref,
                    "error": str(exc),
                },
            )
            raise AuditAppendError(request.action.value, str(exc)) from exc

        logger.info(
            "audit_entry_appended",
            extra={
                "action": request.action.value,
                "employee_ref": request.employee_ref,
                "seq": seq,
                "amount": str(amount) if amount is not None else None,
            },
        )
        return AuditEntry.from_model(model)

    # ------------------------------------------------------------------
    # Domain-specific recording methods
    # ------------------------------------------------------------------

    def record_payroll_calculated(self, record: PayrollRecord, actor: str) -> AuditEntry:
        return self.append(AuditEntryRequest(
            action=AuditAction.CALCULATE_PAYROLL,
            user=actor,
            employee_ref=record.employee_id,
            amount=record.gross_pay,
            details=f"Week {record.week_start.isoformat()} to {record.week_end.isoformat()}",
            payload={
                "record_id": record.record_id,
                "week_start": record.week_start,
                "week_end": record.week_end,
                "salary_type": record.salary_type,
                "base_pay": record.base_pay,
                "overtime_pay": record.overtime_pay,
                "bonuses": record.bonuses,
                "deductions": record.deductions,
                "gross_pay": record.gross_pay,
                "net_pay": record.net_pay,
            },
        ))

    def record_bulk_calculation(
        self,
        batch_id: UUID,
        week: WeekRange,
        employee_count: int,
        succeeded: int,
        failed: int,
        total_gross: Decimal,
        actor: str,
        status: str,
    ) -> AuditEntry:
        """The single summary entry of a bulk run."""
        return self.append(AuditEntryRequest(
            action=AuditAction.BULK_CALCULATE,
            user=actor,
            employee_ref=f"{employee_count} employees",
            employee_count=employee_count,
            amount=total_gross,
            details=f"{succeeded} succeeded, {failed} failed",
            payload={
                "batch_id": batch_id,
                "week_start": week.start,
                "week_end": week.end,
                "succeeded": succeeded,
                "failed": failed,
                "status": status,
            },
        ))

    def record_annual_bonus(
        self, employee_id: str, amount: Decimal, days_worked: int, actor: str,
    ) -> AuditEntry:
        return self.append(AuditEntryRequest(
            action=AuditAction.CALCULATE_AGUINALDO,
            user=actor,
            employee_ref=employee_id,
            amount=amount,
            details=f"{days_worked} days worked",
            payload={"days_worked": days_worked},
        ))

    def record_severance(
        self, employee_id: str, amount: Decimal, reason: str, days_paid: int, actor: str,
    ) -> AuditEntry:
        return self.append(AuditEntryRequest(
            action=AuditAction.CALCULATE_SEVERANCE,
            user=actor,
            employee_ref=employee_id,
            amount=amount,
            details=f"Reason: {reason}",
            payload={"termination_reason": reason, "days_paid": days_paid},
        ))

    def record_payroll_processed(self, record: PayrollRecord, actor: str) -> AuditEntry:
        return self.append(AuditEntryRequest(
            action=AuditAction.PROCESS_PAYROLL,
            user=actor,
            employee_ref=record.employee_id,
            amount=record.net_pay,
            details=f"Week {record.week_start.isoformat()} processed",
            payload={"record_id": record.record_id, "gross_pay": record.gross_pay},
        ))

    def record_payroll_approved(self, record: PayrollRecord, actor: str) -> AuditEntry:
        return self.append(AuditEntryRequest(
            action=AuditAction.APPROVE_PAYROLL,
            user=actor,
            employee_ref=record.employee_id,
            amount=record.net_pay,
            details=f"Week {record.week_start.isoformat()} approved",
            payload={"record_id": record.record_id},
        ))

    def record_adjustment_added(
        self,
        employee_id: str,
        adjustment_id: UUID,
        adjustment_type: AdjustmentType,
        category: str,
        amount: Decimal,
        description: str,
        week_start: date,
        actor: str,
    ) -> AuditEntry:
        return self.append(AuditEntryRequest(
            action=AuditAction.ADJUSTMENT_ADDED,
            user=actor,
            employee_ref=employee_id,
            amount=amount,
            details=f"{adjustment_type.value}: {description}",
            payload={
                "adjustment_id": adjustment_id,
                "type": adjustment_type,
                "category": category,
                "week_start": week_start,
            },
        ))

    def record_rates_modified(
        self, old: RateConfiguration, new: RateConfiguration, actor: str,
    ) -> AuditEntry:
        return self.append(AuditEntryRequest(
            action=AuditAction.MODIFY_RATES,
            user=actor,
            employee_count=0,
            details="Rate configuration changed",
            payload={"old": old.to_dict(), "new": new.to_dict()},
        ))

    def record_export(
        self, description: str, row_count: int, actor: str,
    ) -> AuditEntry:
        return self.append(AuditEntryRequest(
            action=AuditAction.EXPORT,
            user=actor,
            employee_count=row_count,
            details=description,
            payload={"row_count": row_count},
        ))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(self, audit_query: AuditQuery | None = None) -> Iterator[AuditEntry]:
        """Lazily yield entries matching ``audit_query``, newest first by default."""
        q = audit_query or AuditQuery()
        stmt = select(AuditEntryModel)
        if q.action is not None:
            stmt = stmt.where(AuditEntryModel.action == AuditAction(q.action).value)
        if q.employee_id is not None:
            stmt = stmt.where(AuditEntryModel.employee_ref == q.employee_id)
        if q.date_from is not None:
            stmt = stmt.where(
                AuditEntryModel.occurred_at >= datetime.combine(q.date_from, time.min, tzinfo=UTC)
            )
        if q.date_to is not None:
            stmt = stmt.where(
                AuditEntryModel.occurred_at
                < datetime.combine(q.date_to + timedelta(days=1), time.min, tzinfo=UTC)
            )
        if q.ascending:
            stmt = stmt.order_by(AuditEntryModel.occurred_at.asc(), AuditEntryModel.seq.asc())
        else:
            stmt = stmt.order_by(AuditEntryModel.occurred_at.desc(), AuditEntryModel.seq.desc())

        for model in self._session.execute(stmt).scalars():
            yield AuditEntry.from_model(model)

    def summarize(self, entries: Iterable[AuditEntry] | None = None) -> AuditSummary:
        """Summary of ``entries``, or of the whole trail when omitted."""
        return summarize(self.query() if entries is None else entries)

    def validate_chain(self) -> bool:
        """
        Validate the entire audit chain.

        Raises:
            AuditChainBrokenError: If chain validation fails at any point.
        """
        entries = self._session.execute(
            select(AuditEntryModel)
            .order_by(AuditEntryModel.seq)
            .execution_options(populate_existing=True)
        ).scalars().all()

        if not entries:
            return True

        if entries[0].prev_hash is not None:
            logger.critical("audit_chain_broken", extra={"seq": entries[0].seq})
            raise AuditChainBrokenError(str(entries[0].id), "None", entries[0].prev_hash)

        for i, entry in enumerate(entries):
            expected_payload_hash = _content_hash(
                entry.payload or {},
                entry.amount,
                entry.user,
                entry.details,
                entry.employee_count,
            )
            if entry.payload_hash != expected_payload_hash:
                logger.critical("audit_chain_broken", extra={"seq": entry.seq})
                raise AuditChainBrokenError(
                    str(entry.id), expected_payload_hash, entry.payload_hash,
                )

            expected_hash = hash_audit_entry(
                action=entry.action,
                employee_ref=entry.employee_ref,
                payload_hash=entry.payload_hash,
                prev_hash=entry.prev_hash,
            )
            if entry.hash != expected_hash:
                logger.critical("audit_chain_broken", extra={"seq": entry.seq})
                raise AuditChainBrokenError(str(entry.id), expected_hash, entry.hash)

            if i > 0 and entry.prev_hash != entries[i - 1].hash:
                logger.critical("audit_chain_broken", extra={"seq": entry.seq})
                raise AuditChainBrokenError(
                    str(entry.id), entries[i - 1].hash, entry.prev_hash or "None",
                )

        logger.info("audit_chain_valid", extra={"entry_count": len(entries)})
        return True

    def purge(self, actor: str, reason: str) -> int:
        """
        Delete every audit entry.  Destructive, explicit override.

        Bypasses the ORM-level immutability listeners via a bulk DELETE.
        The sequence counter is left untouched, so seq stays monotonic
        across purges.

        Returns:
            Number of entries removed.
        """
        self._session.flush()
        result = self._session.execute(delete(AuditEntryModel))
        logger.warning(
            "audit_trail_purged",
            extra={"actor": actor, "reason": reason, "deleted": result.rowcount},
        )
        return result.rowcount
