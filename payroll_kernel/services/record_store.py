"""
PayrollRecordStore -- persistence contract for weekly payroll records.

Responsibility:
    Keyed storage of PayrollRecord by (employee_id, week_start) with an
    atomic per-key upsert and the one-way processed transition.

Architecture position:
    Kernel > Services.  ``PayrollRecordStore`` is the Protocol the payroll
    service and bulk processor depend on; ``SqlPayrollRecordStore`` is the
    SQLAlchemy implementation.

Invariants enforced:
    - At most one record per (employee_id, week_start).  Concurrent upserts
      of the same key serialize on ``SELECT ... FOR UPDATE``; a lost insert
      race is retried once as an update.
    - A processed record is final: upsert and mark_processed on it raise
      AlreadyProcessedError.

Failure modes:
    - RecordNotFoundError: no record for the key / id.
    - AlreadyProcessedError: record is processed.
    - StoreError: any other database failure.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import PayrollRecord
from payroll_kernel.exceptions import (
    AlreadyProcessedError,
    RecordNotFoundError,
    StoreError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.payroll_record import PayrollRecordModel

logger = get_logger("services.record_store")

# Payroll figures copied on every (re)calculation
_CALCULATED_FIELDS = (
    "week_end",
    "worked_days",
    "regular_hours",
    "overtime_hours",
    "base_pay",
    "overtime_rate",
    "overtime_pay",
    "bonuses",
    "deductions",
    "gross_pay",
    "net_pay",
    "calculated_by",
    "calculated_at",
)


@runtime_checkable
class PayrollRecordStore(Protocol):
    """Keyed store of weekly payroll records."""

    def get(self, employee_id: str, week_start: date) -> PayrollRecord: ...

    def upsert(self, record: PayrollRecord) -> PayrollRecord: ...

    def mark_processed(self, record_id: UUID, processed_by: str) -> PayrollRecord: ...

    def list_for_week(self, week_start: date) -> list[PayrollRecord]: ...


class SqlPayrollRecordStore:
    """
    SQLAlchemy implementation of PayrollRecordStore.

    Contract:
        Each write runs in its own SAVEPOINT of the caller's session, so a
        failed write leaves the caller's other work intact.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def _select_for_update(self, employee_id: str, week_start: date) -> PayrollRecordModel | None:
        return self._session.execute(
            select(PayrollRecordModel)
            .where(
                PayrollRecordModel.employee_id == employee_id,
                PayrollRecordModel.week_start == week_start,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get(self, employee_id: str, week_start: date) -> PayrollRecord:
        try:
            model = self._session.execute(
                select(PayrollRecordModel).where(
                    PayrollRecordModel.employee_id == employee_id,
                    PayrollRecordModel.week_start == week_start,
                )
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError("get", str(exc)) from exc
        if model is None:
            raise RecordNotFoundError("PayrollRecord", f"{employee_id}@{week_start.isoformat()}")
        return PayrollRecord.from_model(model)

    def find(self, employee_id: str, week_start: date) -> PayrollRecord | None:
        """``get`` that returns None instead of raising RecordNotFoundError."""
        try:
            return self.get(employee_id, week_start)
        except RecordNotFoundError:
            return None

    def upsert(self, record: PayrollRecord) -> PayrollRecord:
        """
        Insert or update the record for (employee_id, week_start).

        Returns:
            The stored record, with ``record_id`` set.

        Raises:
            AlreadyProcessedError: If the stored record is processed.
            StoreError: On database failure.
        """
        try:
            return self._upsert_once(record)
        except IntegrityError:
            # Lost the insert race to a concurrent writer; the row exists now
            logger.info(
                "payroll_upsert_race_retry",
                extra={
                    "employee_id": record.employee_id,
                    "week_start": record.week_start.isoformat(),
                },
            )
            try:
                return self._upsert_once(record)
            except SQLAlchemyError as exc:
                raise StoreError("upsert", str(exc)) from exc
        except SQLAlchemyError as exc:
            raise StoreError("upsert", str(exc)) from exc

    def _upsert_once(self, record: PayrollRecord) -> PayrollRecord:
        with self._session.begin_nested():
            model = self._select_for_update(record.employee_id, record.week_start)
            if model is None:
                model = PayrollRecordModel(
                    employee_id=record.employee_id,
                    week_start=record.week_start,
                    salary_type=record.salary_type.value,
                    processed=False,
                    created_by=record.calculated_by or "system",
                    created_at=self._clock.now(),
                    updated_at=self._clock.now(),
                )
                self._session.add(model)
                created = True
            else:
                if model.processed:
                    raise AlreadyProcessedError(str(model.id), model.processed_by)
                model.salary_type = record.salary_type.value
                model.updated_by = record.calculated_by
                model.updated_at = self._clock.now()
                created = False

            for name in _CALCULATED_FIELDS:
                setattr(model, name, getattr(record, name))
            self._session.flush()

        logger.info(
            "payroll_record_upserted",
            extra={
                "employee_id": record.employee_id,
                "week_start": record.week_start.isoformat(),
                "inserted": created,
                "gross_pay": str(record.gross_pay),
            },
        )
        return replace(record, record_id=model.id, processed=False)

    def mark_processed(self, record_id: UUID, processed_by: str) -> PayrollRecord:
        """
        Transition a record to processed.

        Raises:
            RecordNotFoundError: If no record has ``record_id``.
            AlreadyProcessedError: If it is already processed.
        """
        try:
            with self._session.begin_nested():
                model = self._session.execute(
                    select(PayrollRecordModel)
                    .where(PayrollRecordModel.id == record_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one_or_none()
                if model is None:
                    raise RecordNotFoundError("PayrollRecord", str(record_id))
                if model.processed:
                    raise AlreadyProcessedError(str(record_id), model.processed_by)
                now = self._clock.now()
                model.processed = True
                model.processed_by = processed_by
                model.processed_at = now
                model.updated_by = processed_by
                model.updated_at = now
                self._session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("mark_processed", str(exc)) from exc

        logger.info(
            "payroll_record_processed",
            extra={"record_id": str(record_id), "processed_by": processed_by},
        )
        return PayrollRecord.from_model(model)

    def mark_approved(self, record_id: UUID, approved_by: str) -> PayrollRecord:
        """Stamp approval on a processed record."""
        try:
            with self._session.begin_nested():
                model = self._session.get(PayrollRecordModel, record_id, with_for_update=True)
                if model is None:
                    raise RecordNotFoundError("PayrollRecord", str(record_id))
                now = self._clock.now()
                model.approved_by = approved_by
                model.approved_at = now
                model.updated_by = approved_by
                model.updated_at = now
                self._session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("mark_approved", str(exc)) from exc
        return PayrollRecord.from_model(model)

    def list_for_week(self, week_start: date) -> list[PayrollRecord]:
        """All records of one week, ordered by employee id."""
        try:
            models = self._session.execute(
                select(PayrollRecordModel)
                .where(PayrollRecordModel.week_start == week_start)
                .order_by(PayrollRecordModel.employee_id)
            ).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError("list_for_week", str(exc)) from exc
        return [PayrollRecord.from_model(m) for m in models]
