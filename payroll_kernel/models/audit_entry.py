"""
Module: payroll_kernel.models.audit_entry
Responsibility: ORM persistence for the tamper-evident payroll audit chain.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Audit rows are append-only; no ORM UPDATE or DELETE
      (listeners in db/immutability.py).
    - hash = H(action | employee_ref | payload_hash | prev_hash), validated by
      AuditTrail.validate_chain().
    - seq is monotonically increasing, allocated by SequenceService.

Failure modes:
    - ImmutabilityViolationError on any UPDATE/DELETE attempt.
    - AuditChainBrokenError when chain validation detects a hash mismatch.

Audit relevance:
    AuditEntryModel IS the audit trail.  Every successful calculation,
    bulk run, special payment, processing, approval, adjustment and rate
    change produces one row.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base


class AuditEntryModel(Base):
    """
    Audit entry with hash chain for tamper evidence.

    Guarantees:
        - seq is unique and monotonically increasing.
        - prev_hash is None only for the genesis entry.

    Non-goals:
        - This model does NOT enforce hash correctness at INSERT time;
          that is the responsibility of AuditTrail.
    """

    __tablename__ = "payroll_audit_entries"

    __table_args__ = (
        Index("idx_payroll_audit_action", "action"),
        Index("idx_payroll_audit_occurred", "occurred_at"),
        Index("idx_payroll_audit_employee", "employee_ref"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    action: Mapped[str] = mapped_column(String(50), nullable=False)

    # Employee id, or "<n> employees" for bulk entries
    employee_ref: Mapped[str | None] = mapped_column(String(100), nullable=True)
    employee_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    user: Mapped[str] = mapped_column(String(100), nullable=False)
    details: Mapped[str] = mapped_column(String(4000), nullable=False, default="")

    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<AuditEntry #{self.seq} {self.action} {self.employee_ref}>"

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None
