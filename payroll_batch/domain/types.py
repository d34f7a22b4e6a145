"""
payroll_batch.domain.types -- Pure frozen dataclasses for bulk payroll runs.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - All DTOs are frozen; progress snapshots handed to callbacks cannot
      be mutated by the observer.
    - ``BatchResult.completed`` counts attempted employees (succeeded +
      failed); employees skipped by cancellation are not counted.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from payroll_kernel.domain.dtos import PayrollRecord

# Error code for failures that are not PayrollKernelError subclasses
UNHANDLED_EXCEPTION = "UNHANDLED_EXCEPTION"


class BatchStatus(str, Enum):
    """Run-level outcome."""

    COMPLETED = "completed"  # Every employee succeeded
    PARTIALLY_COMPLETED = "partially_completed"  # Some employees failed
    FAILED = "failed"  # No employee succeeded
    CANCELLED = "cancelled"  # Stopped before every employee was attempted


@dataclass(frozen=True)
class BatchItemError:
    """One employee's failure: error is the exception code."""

    employee_id: str
    error: str
    message: str = ""


@dataclass(frozen=True)
class BatchProgress:
    """Snapshot emitted after every employee."""

    total: int
    completed: int
    current_employee_id: str | None
    errors: int

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 1.0


@dataclass(frozen=True)
class BatchResult:
    """Immutable result of one bulk run, returned by BulkPayrollProcessor.run()."""

    batch_id: UUID
    week_start: date
    week_end: date
    status: BatchStatus
    total: int
    completed: int
    succeeded: int
    errors: tuple[BatchItemError, ...] = ()
    records: tuple[PayrollRecord, ...] = ()
    cancelled: bool = False
    duration_ms: int = 0

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def total_gross(self) -> Decimal:
        return sum((r.gross_pay for r in self.records), Decimal("0.00"))


class CancellationToken:
    """Cooperative cancel signal, checked between employees.

    Safe to trip from any thread; an employee already in flight finishes.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
