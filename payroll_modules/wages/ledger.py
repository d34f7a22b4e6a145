"""
AdjustmentLedger (``payroll_modules.wages.ledger``).

Responsibility
--------------
Store and retrieve the manual bonuses and deductions attached to an
employee-week.  Folding them into pay is done by
``payroll_engines.adjustments.fold_adjustments`` on every calculation.

Invariants enforced
-------------------
* ``amount > 0`` after rounding to cents and a non-empty description,
  else ``AdjustmentValidationError``.
* An adjustment belongs to the week whose range contains its
  ``week_start``.  ``list_for`` with a ``WeekRange`` returns every
  adjustment dated inside the range, not only those dated on its first day.
* Adjustments are immutable; ``remove`` is the only way to change the set.
* The week's processed record is final: adding to or removing from a
  processed week raises ``AlreadyProcessedError``.
* Each add is audited (``adjustment_added``) in the same SAVEPOINT as the
  insert, so an audit failure leaves no unaudited adjustment behind.
* ``list_for`` yields in creation order (``seq``).  An adjustment added
  before its week was first calculated is linked to the record on read.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from payroll_kernel.db.types import round_money, to_decimal
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import (
    Adjustment,
    AdjustmentCategory,
    AdjustmentRequest,
    AdjustmentType,
    WeekRange,
)
from payroll_kernel.exceptions import (
    AdjustmentValidationError,
    AlreadyProcessedError,
    RecordNotFoundError,
    StoreError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.adjustment import AdjustmentModel
from payroll_kernel.models.payroll_record import PayrollRecordModel
from payroll_kernel.services.audit_trail import AuditTrail
from payroll_kernel.services.sequence_service import SequenceService

logger = get_logger("modules.wages.ledger")


def _validated_amount(raw: object) -> Decimal:
    try:
        amount = to_decimal(raw, "amount")
    except (TypeError, ValueError) as exc:
        raise AdjustmentValidationError("amount", str(exc)) from exc
    if not amount.is_finite():
        raise AdjustmentValidationError("amount", f"must be finite, got {raw}")
    rounded = round_money(amount)
    if rounded <= 0:
        raise AdjustmentValidationError(
            "amount", f"must be at least 0.01 after rounding, got {raw}",
        )
    return rounded


class AdjustmentLedger:
    """
    Persistent ledger of adjustments.

    Contract
    --------
    * Does NOT call ``session.commit()``; writes run in SAVEPOINTs.
    * ``list_for`` is a lazy generator: call it again for a fresh pass.
    """

    def __init__(
        self,
        session: Session,
        auditor: AuditTrail,
        clock: Clock | None = None,
        sequence_service: SequenceService | None = None,
    ):
        self._session = session
        self._auditor = auditor
        self._clock = clock or SystemClock()
        self._sequence = sequence_service or SequenceService(session)

    def _record_for_day(self, employee_id: str, day: date) -> PayrollRecordModel | None:
        """The employee's record whose week range contains ``day``."""
        return self._session.execute(
            select(PayrollRecordModel)
            .where(
                PayrollRecordModel.employee_id == employee_id,
                PayrollRecordModel.week_start <= day,
                PayrollRecordModel.week_end >= day,
            )
            .order_by(PayrollRecordModel.week_start.desc())
            .limit(1)
        ).scalar_one_or_none()

    def add(self, request: AdjustmentRequest, actor: str) -> Adjustment:
        """
        Validate, persist and audit one adjustment.

        Raises:
            AdjustmentValidationError: Bad amount, description, type or category.
            AlreadyProcessedError: The week's record is already processed.
            AuditAppendError: The audit entry could not be written.
            StoreError: Any other database failure.
        """
        if not request.employee_id:
            raise AdjustmentValidationError("employee_id", "is required")
        try:
            adjustment_type = AdjustmentType(request.type)
        except ValueError as exc:
            raise AdjustmentValidationError("type", f"unknown type {request.type!r}") from exc
        try:
            category = AdjustmentCategory(request.category)
        except ValueError as exc:
            raise AdjustmentValidationError(
                "category", f"unknown category {request.category!r}",
            ) from exc
        amount = _validated_amount(request.amount)
        description = (request.description or "").strip()
        if not description:
            raise AdjustmentValidationError("description", "must not be empty")

        try:
            with self._session.begin_nested():
                record = self._record_for_day(request.employee_id, request.week_start)
                if record is not None and record.processed:
                    raise AlreadyProcessedError(str(record.id), record.processed_by)

                model = AdjustmentModel(
                    seq=self._sequence.next_value(SequenceService.ADJUSTMENT),
                    employee_id=request.employee_id,
                    week_start=request.week_start,
                    payroll_id=record.id if record is not None else None,
                    adjustment_type=adjustment_type.value,
                    category=category.value,
                    amount=amount,
                    description=description,
                    authorized_by=actor,
                    created_at=self._clock.now(),
                )
                self._session.add(model)
                self._session.flush()

                self._auditor.record_adjustment_added(
                    employee_id=request.employee_id,
                    adjustment_id=model.id,
                    adjustment_type=adjustment_type,
                    category=category.value,
                    amount=amount,
                    description=description,
                    week_start=request.week_start,
                    actor=actor,
                )
        except SQLAlchemyError as exc:
            raise StoreError("adjustment_add", str(exc)) from exc

        logger.info(
            "adjustment_added",
            extra={
                "adjustment_id": str(model.id),
                "employee_id": request.employee_id,
                "week_start": request.week_start.isoformat(),
                "type": adjustment_type.value,
                "amount": str(amount),
            },
        )
        return Adjustment.from_model(model)

    def list_for(self, employee_id: str, week: WeekRange | date) -> Iterator[Adjustment]:
        """
        Adjustments for one employee-week, in creation order.

        A ``WeekRange`` matches every adjustment dated inside it; a bare
        date matches adjustments dated on that day.
        """
        if isinstance(week, WeekRange):
            in_week = AdjustmentModel.week_start.between(week.start, week.end)
        else:
            in_week = AdjustmentModel.week_start == week
        stmt = (
            select(AdjustmentModel)
            .where(AdjustmentModel.employee_id == employee_id, in_week)
            .order_by(AdjustmentModel.seq)
        )
        models = self._session.execute(stmt).scalars().all()

        records: dict[date, PayrollRecordModel | None] = {}
        for model in models:
            adjustment = Adjustment.from_model(model)
            if adjustment.payroll_id is None:
                if model.week_start not in records:
                    records[model.week_start] = self._record_for_day(
                        employee_id, model.week_start,
                    )
                record = records[model.week_start]
                if record is not None:
                    adjustment = replace(adjustment, payroll_id=record.id)
            yield adjustment

    def remove(self, adjustment_id: UUID, actor: str) -> None:
        """
        Delete one adjustment.

        Raises:
            RecordNotFoundError: No adjustment has ``adjustment_id``.
            AlreadyProcessedError: Its week's record is already processed.
        """
        try:
            with self._session.begin_nested():
                model = self._session.get(AdjustmentModel, adjustment_id)
                if model is None:
                    raise RecordNotFoundError("Adjustment", str(adjustment_id))
                record = self._record_for_day(model.employee_id, model.week_start)
                if record is not None and record.processed:
                    raise AlreadyProcessedError(str(record.id), record.processed_by)
                employee_id = model.employee_id
                self._session.delete(model)
                self._session.flush()
        except SQLAlchemyError as exc:
            raise StoreError("adjustment_remove", str(exc)) from exc

        logger.info(
            "adjustment_removed",
            extra={
                "adjustment_id": str(adjustment_id),
                "employee_id": employee_id,
                "removed_by": actor,
            },
        )
