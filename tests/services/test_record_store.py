"""
Tests for SqlPayrollRecordStore.

Covers:
- Upsert insert / update on the (employee_id, week_start) key
- Deterministic last-write-wins
- Processed transition and its finality
- Approval stamping
- ORM immutability of processed records
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from payroll_kernel.domain.dtos import PayrollRecord, SalaryType
from payroll_kernel.exceptions import (
    AlreadyProcessedError,
    ImmutabilityViolationError,
    RecordNotFoundError,
)
from payroll_kernel.models import PayrollRecordModel
from payroll_kernel.services.record_store import PayrollRecordStore

WEEK_START = date(2026, 1, 5)
WEEK_END = date(2026, 1, 11)


def make_record(employee_id: str = "E1", gross: str = "1950.00", **overrides) -> PayrollRecord:
    gross_pay = Decimal(gross)
    fields = dict(
        employee_id=employee_id,
        week_start=WEEK_START,
        week_end=WEEK_END,
        salary_type=SalaryType.DAILY,
        worked_days=5,
        regular_hours=Decimal("40"),
        overtime_hours=Decimal("8"),
        base_pay=gross_pay,
        overtime_rate=Decimal("56.2500"),
        overtime_pay=Decimal("0.00"),
        bonuses=Decimal("0.00"),
        deductions=Decimal("0.00"),
        gross_pay=gross_pay,
        net_pay=gross_pay,
        calculated_by="tester",
    )
    fields.update(overrides)
    return PayrollRecord(**fields)


class TestUpsert:

    def test_satisfies_protocol(self, record_store):
        assert isinstance(record_store, PayrollRecordStore)

    def test_insert_assigns_record_id(self, record_store):
        stored = record_store.upsert(make_record())

        assert stored.record_id is not None
        assert record_store.get("E1", WEEK_START).gross_pay == Decimal("1950.00")

    def test_update_keeps_single_row(self, session, record_store):
        first = record_store.upsert(make_record(gross="1000.00"))
        second = record_store.upsert(make_record(gross="1200.00"))

        count = session.execute(
            select(func.count()).select_from(PayrollRecordModel)
        ).scalar_one()
        assert count == 1
        assert first.record_id == second.record_id
        assert record_store.get("E1", WEEK_START).gross_pay == Decimal("1200.00")

    def test_last_write_wins(self, record_store):
        record_store.upsert(make_record(gross="1.00"))
        record_store.upsert(make_record(gross="2.00"))
        record_store.upsert(make_record(gross="3.00"))

        assert record_store.get("E1", WEEK_START).gross_pay == Decimal("3.00")

    def test_week_end_stored(self, record_store):
        record_store.upsert(make_record())

        record = record_store.get("E1", WEEK_START)
        assert record.week_end == WEEK_END
        assert record.week.days == 7

    def test_keys_are_independent(self, record_store):
        record_store.upsert(make_record("E1"))
        record_store.upsert(make_record("E2", gross="10.00"))
        record_store.upsert(make_record("E1", week_start=date(2026, 1, 12), week_end=date(2026, 1, 18)))

        assert [r.employee_id for r in record_store.list_for_week(WEEK_START)] == ["E1", "E2"]


class TestGet:

    def test_missing_raises_not_found(self, record_store):
        with pytest.raises(RecordNotFoundError) as exc_info:
            record_store.get("nobody", WEEK_START)

        assert exc_info.value.code == "NOT_FOUND"

    def test_find_returns_none(self, record_store):
        assert record_store.find("nobody", WEEK_START) is None


class TestProcessing:

    def test_mark_processed(self, record_store, clock):
        stored = record_store.upsert(make_record())

        processed = record_store.mark_processed(stored.record_id, "supervisor")

        assert processed.processed is True
        assert processed.processed_by == "supervisor"
        assert processed.processed_at is not None

    def test_mark_processed_twice(self, record_store):
        stored = record_store.upsert(make_record())
        record_store.mark_processed(stored.record_id, "supervisor")

        with pytest.raises(AlreadyProcessedError) as exc_info:
            record_store.mark_processed(stored.record_id, "supervisor")

        assert exc_info.value.processed_by == "supervisor"

    def test_mark_processed_unknown_id(self, record_store):
        with pytest.raises(RecordNotFoundError):
            record_store.mark_processed(uuid4(), "supervisor")

    def test_upsert_after_processing_rejected(self, record_store):
        stored = record_store.upsert(make_record(gross="1000.00"))
        record_store.mark_processed(stored.record_id, "supervisor")

        with pytest.raises(AlreadyProcessedError):
            record_store.upsert(make_record(gross="9999.00"))

        assert record_store.get("E1", WEEK_START).gross_pay == Decimal("1000.00")

    def test_mark_approved(self, record_store):
        stored = record_store.upsert(make_record())
        record_store.mark_processed(stored.record_id, "supervisor")

        approved = record_store.mark_approved(stored.record_id, "manager")

        assert approved.approved
        assert approved.approved_by == "manager"


class TestProcessedImmutability:

    def test_orm_blocks_figure_change(self, session, record_store):
        stored = record_store.upsert(make_record())
        record_store.mark_processed(stored.record_id, "supervisor")
        model = session.get(PayrollRecordModel, stored.record_id)

        model.gross_pay = Decimal("1.00")
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_orm_blocks_reopening(self, session, record_store):
        stored = record_store.upsert(make_record())
        record_store.mark_processed(stored.record_id, "supervisor")
        model = session.get(PayrollRecordModel, stored.record_id)

        model.processed = False
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_orm_blocks_delete(self, session, record_store):
        stored = record_store.upsert(make_record())
        record_store.mark_processed(stored.record_id, "supervisor")
        model = session.get(PayrollRecordModel, stored.record_id)

        session.delete(model)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_unprocessed_record_can_be_deleted(self, session, record_store):
        stored = record_store.upsert(make_record())
        model = session.get(PayrollRecordModel, stored.record_id)

        session.delete(model)
        session.flush()

        assert record_store.find("E1", WEEK_START) is None

