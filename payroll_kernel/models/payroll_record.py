"""
Module: payroll_kernel.models.payroll_record
Responsibility: ORM persistence for weekly payroll records.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Exactly one row per (employee_id, week_start) (UNIQUE constraint).
    - processed goes false -> true once; afterwards the payroll figures are
      frozen (ORM listener in db/immutability.py).  Only the approval
      columns and audit metadata may still change.

Failure modes:
    - IntegrityError on a concurrent insert of the same key (the record
      store retries once inside a SAVEPOINT).
    - ImmutabilityViolationError when a processed record's figures change.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase


class PayrollRecordModel(TrackedBase):
    """One employee's payroll for one week."""

    __tablename__ = "payroll_records"

    __table_args__ = (
        UniqueConstraint("employee_id", "week_start", name="uq_payroll_employee_week"),
        Index("idx_payroll_week_start", "week_start"),
    )

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    week_end: Mapped[date] = mapped_column(Date, nullable=False)
    salary_type: Mapped[str] = mapped_column(String(20), nullable=False)

    worked_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    regular_hours: Mapped[Decimal] = mapped_column(nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(nullable=False)

    base_pay: Mapped[Decimal] = mapped_column(nullable=False)
    overtime_rate: Mapped[Decimal] = mapped_column(nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(nullable=False)
    bonuses: Mapped[Decimal] = mapped_column(nullable=False)
    deductions: Mapped[Decimal] = mapped_column(nullable=False)
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)

    calculated_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    calculated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    processed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    approved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Columns that may change after processing
    MUTABLE_AFTER_PROCESSING = frozenset({
        "processed", "processed_by", "processed_at",
        "approved_by", "approved_at",
        "updated_at", "updated_by",
    })

    def __repr__(self) -> str:
        return f"<PayrollRecord {self.employee_id} {self.week_start}>"

    @property
    def gross_matches_components(self) -> bool:
        return self.gross_pay == self.base_pay + self.overtime_pay + self.bonuses
