"""
Module: payroll_kernel.models.adjustment
Responsibility: ORM persistence for manual payroll adjustments (bonuses and
    deductions) attached to an employee-week.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Adjustments are immutable once created: UPDATE is blocked by the ORM
      listener in db/immutability.py.  Explicit removal is a DELETE issued
      by AdjustmentLedger.remove().
    - seq is allocated by SequenceService and gives the insertion order.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, Date, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base, UUIDString


class AdjustmentModel(Base):
    """A bonus or deduction on one employee-week."""

    __tablename__ = "payroll_adjustments"

    __table_args__ = (
        Index("idx_adjustment_employee_week", "employee_id", "week_start"),
        Index("idx_adjustment_seq", "seq"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)

    # Linked record, when one existed at creation time
    payroll_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    adjustment_type: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(4000), nullable=False)

    authorized_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Adjustment {self.adjustment_type} {self.amount} "
            f"{self.employee_id} {self.week_start}>"
        )
