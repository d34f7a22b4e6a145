"""
BulkPayrollProcessor -- weekly payroll for many employees with per-employee isolation.

Contract:
    ``run()`` calculates one week for a list of employees and returns a
    ``BatchResult``.  One employee's failure never aborts the run.

Architecture: payroll_batch/services.  Drives
    ``payroll_modules.wages.WagePayrollService.calculate_weekly`` per
    employee and appends the run summary through the kernel AuditTrail.
    ``build_bulk_processor()`` is the configured production entrypoint.

Modes:
    sequential (default)
        Employees run in the order given, each in its own SAVEPOINT of the
        caller's session.  Per-employee audit entries appear in that same
        order, followed by the single ``bulk_calculate`` entry.
    worker pool (``max_workers > 1``)
        Each employee runs in its own session from ``session_factory`` and
        commits independently.  Completion order is not guaranteed.

Invariants enforced:
    - Per-employee isolation: errors are collected as BatchItemError with
      the exception ``code`` (or UNHANDLED_EXCEPTION).
    - Progress is emitted after every employee; ``completed`` never
      decreases (updates are serialized by a lock).
    - Cancellation is checked before each employee starts.
    - Exactly one ``bulk_calculate`` audit entry per run.  If it cannot be
      written, AuditAppendError propagates with ``batch_result`` attached.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from payroll_kernel.db.engine import get_session_factory, init_engine_from_url
from payroll_kernel.db.immutability import register_immutability_listeners
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import PayrollRecord, RateConfiguration, WeekRange
from payroll_kernel.exceptions import (
    AuditAppendError,
    BatchConfigurationError,
    PayrollKernelError,
)
from payroll_kernel.logging_config import LogContext, configure_logging, get_logger
from payroll_kernel.services.attendance_source import AttendanceSource
from payroll_kernel.services.audit_trail import AuditTrail
from payroll_modules.wages.service import WagePayrollService

from payroll_batch.domain.types import (
    UNHANDLED_EXCEPTION,
    BatchItemError,
    BatchProgress,
    BatchResult,
    BatchStatus,
    CancellationToken,
)

if TYPE_CHECKING:
    from payroll_config.schema import EngineConfig

logger = get_logger("batch.processor")

ProgressCallback = Callable[[BatchProgress], None]
ServiceFactory = Callable[[Session], WagePayrollService]


class _ProgressTracker:
    """Lock-guarded accumulator shared by the workers of one run."""

    def __init__(self, total: int, on_progress: ProgressCallback | None):
        self._lock = threading.Lock()
        self._total = total
        self._on_progress = on_progress
        self.completed = 0
        self.errors = 0

    def item_done(self, employee_id: str, failed: bool) -> None:
        with self._lock:
            self.completed += 1
            if failed:
                self.errors += 1
            snapshot = BatchProgress(
                total=self._total,
                completed=self.completed,
                current_employee_id=employee_id,
                errors=self.errors,
            )
            # Called under the lock so observers see snapshots in order
            if self._on_progress is not None:
                self._on_progress(snapshot)


def _item_error(employee_id: str, exc: Exception) -> BatchItemError:
    if isinstance(exc, PayrollKernelError):
        return BatchItemError(employee_id, exc.code, str(exc))
    return BatchItemError(employee_id, UNHANDLED_EXCEPTION, str(exc))


class BulkPayrollProcessor:
    """Bulk weekly payroll runner.

    Contract:
        - ``run()`` returns a BatchResult; it raises only for configuration
          errors and for a failed summary audit append.
        - Sequential mode does NOT call ``session.commit()``; the caller
          controls the boundary.  Pool workers commit their own sessions.

    Non-goals:
        - No retries: a failed employee is reported, not re-attempted.
        - No cross-run locking beyond the record store's per-key upsert.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        *,
        service_factory: ServiceFactory | None = None,
        session_factory: Callable[[], Session] | None = None,
        max_workers: int = 1,
        rates: RateConfiguration | None = None,
    ):
        if max_workers < 1:
            raise BatchConfigurationError(f"max_workers must be >= 1, got {max_workers}")
        if max_workers > 1 and session_factory is None:
            raise BatchConfigurationError("a session_factory is required when max_workers > 1")

        self._session = session
        self._clock = clock or SystemClock()
        self._service_factory = service_factory or self._default_service
        self._session_factory = session_factory
        self._max_workers = max_workers
        self._rates = rates or RateConfiguration()

    @property
    def session(self) -> Session:
        """Session used for sequential runs and the summary entry; the caller commits it."""
        return self._session

    def _default_service(self, session: Session) -> WagePayrollService:
        return WagePayrollService.from_session(session, clock=self._clock)

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def run(
        self,
        employee_ids: Sequence[str],
        week: WeekRange,
        rates: RateConfiguration | None,
        actor: str,
        cancel_token: CancellationToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Calculate ``week`` for every employee in ``employee_ids``.

        ``rates=None`` uses the rate set the processor was built with.

        Raises:
            AuditAppendError: The bulk_calculate summary entry could not be
                written; ``exc.batch_result`` holds the completed result.
        """
        start_time = time.monotonic()
        batch_id = uuid4()
        rates = rates or self._rates
        employee_ids = list(employee_ids)
        tracker = _ProgressTracker(len(employee_ids), on_progress)

        with LogContext.bind(batch_id=str(batch_id), actor_id=actor):
            logger.info(
                "batch_started",
                extra={
                    "total": len(employee_ids),
                    "week_start": week.start.isoformat(),
                    "max_workers": self._max_workers,
                },
            )

            if self._max_workers > 1:
                outcomes = self._run_pool(
                    batch_id, employee_ids, week, rates, actor, cancel_token, tracker,
                )
            else:
                outcomes = self._run_sequential(
                    employee_ids, week, rates, actor, cancel_token, tracker,
                )

            records: list[PayrollRecord] = []
            errors: list[BatchItemError] = []
            for outcome in outcomes:
                if isinstance(outcome, BatchItemError):
                    errors.append(outcome)
                elif outcome is not None:
                    records.append(outcome)

            completed = len(records) + len(errors)
            cancelled = completed < len(employee_ids)
            result = BatchResult(
                batch_id=batch_id,
                week_start=week.start,
                week_end=week.end,
                status=self._status(cancelled, len(records), len(errors)),
                total=len(employee_ids),
                completed=completed,
                succeeded=len(records),
                errors=tuple(errors),
                records=tuple(records),
                cancelled=cancelled,
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )

            self._append_summary(result, week, actor)

            logger.info(
                "batch_completed",
                extra={
                    "status": result.status.value,
                    "total": result.total,
                    "completed": result.completed,
                    "succeeded": result.succeeded,
                    "failed": result.failed,
                    "total_gross": str(result.total_gross),
                    "duration_ms": result.duration_ms,
                },
            )
        return result

    @staticmethod
    def _status(cancelled: bool, succeeded: int, failed: int) -> BatchStatus:
        if cancelled:
            return BatchStatus.CANCELLED
        if failed == 0:
            return BatchStatus.COMPLETED
        if succeeded == 0:
            return BatchStatus.FAILED
        return BatchStatus.PARTIALLY_COMPLETED

    def _append_summary(self, result: BatchResult, week: WeekRange, actor: str) -> None:
        auditor = AuditTrail(self._session, self._clock)
        try:
            auditor.record_bulk_calculation(
                batch_id=result.batch_id,
                week=week,
                employee_count=result.total,
                succeeded=result.succeeded,
                failed=result.failed,
                total_gross=result.total_gross,
                actor=actor,
                status=result.status.value,
            )
        except AuditAppendError as exc:
            exc.batch_result = result
            logger.error(
                "batch_summary_audit_failed",
                extra={"succeeded": result.succeeded, "failed": result.failed},
            )
            raise

    # -------------------------------------------------------------------------
    # Sequential mode
    # -------------------------------------------------------------------------

    def _run_sequential(
        self,
        employee_ids: list[str],
        week: WeekRange,
        rates: RateConfiguration,
        actor: str,
        cancel_token: CancellationToken | None,
        tracker: _ProgressTracker,
    ) -> list[PayrollRecord | BatchItemError | None]:
        service = self._service_factory(self._session)
        outcomes: list[PayrollRecord | BatchItemError | None] = []

        for index, employee_id in enumerate(employee_ids):
            if cancel_token is not None and cancel_token.cancelled:
                logger.warning(
                    "batch_cancelled",
                    extra={"remaining": len(employee_ids) - index},
                )
                break

            with LogContext.bind(employee_id=employee_id):
                savepoint = self._session.begin_nested()
                try:
                    record = service.calculate_weekly(employee_id, week, rates, actor)
                    savepoint.commit()
                    outcome: PayrollRecord | BatchItemError = record
                except Exception as exc:
                    savepoint.rollback()
                    outcome = self._failed(employee_id, exc)

            outcomes.append(outcome)
            tracker.item_done(employee_id, isinstance(outcome, BatchItemError))

        return outcomes

    # -------------------------------------------------------------------------
    # Worker pool mode
    # -------------------------------------------------------------------------

    def _run_pool(
        self,
        batch_id: UUID,
        employee_ids: list[str],
        week: WeekRange,
        rates: RateConfiguration,
        actor: str,
        cancel_token: CancellationToken | None,
        tracker: _ProgressTracker,
    ) -> list[PayrollRecord | BatchItemError | None]:
        def work(employee_id: str) -> PayrollRecord | BatchItemError | None:
            if cancel_token is not None and cancel_token.cancelled:
                return None
            # Worker threads start with an empty log context
            with LogContext.bind(batch_id=str(batch_id), actor_id=actor, employee_id=employee_id):
                outcome = self._calculate_in_own_session(employee_id, week, rates, actor)
            tracker.item_done(employee_id, isinstance(outcome, BatchItemError))
            return outcome

        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="payroll-batch",
        ) as pool:
            # map() keeps caller order in the collected outcomes
            outcomes = list(pool.map(work, employee_ids))

        skipped = sum(1 for o in outcomes if o is None)
        if skipped:
            logger.warning("batch_cancelled", extra={"remaining": skipped})
        return outcomes

    def _calculate_in_own_session(
        self,
        employee_id: str,
        week: WeekRange,
        rates: RateConfiguration,
        actor: str,
    ) -> PayrollRecord | BatchItemError:
        session = self._session_factory()
        try:
            service = self._service_factory(session)
            record = service.calculate_weekly(employee_id, week, rates, actor)
            session.commit()
            return record
        except Exception as exc:
            session.rollback()
            return self._failed(employee_id, exc)
        finally:
            session.close()

    def _failed(self, employee_id: str, exc: Exception) -> BatchItemError:
        error = _item_error(employee_id, exc)
        logger.warning(
            "batch_item_failed",
            extra={
                "error_code": error.error,
                "error_message": error.message,
            },
            exc_info=error.error == UNHANDLED_EXCEPTION,
        )
        return error


def build_bulk_processor(
    session: Session | None = None,
    config: EngineConfig | None = None,
    *,
    clock: Clock | None = None,
    attendance_source: AttendanceSource | None = None,
) -> BulkPayrollProcessor:
    """Build a BulkPayrollProcessor from engine configuration (production entrypoint).

    Loads the active configuration via ``get_active_config()`` when none is
    given, applies its ``log_level``, initializes the module-level engine
    from ``database_url`` and sizes the worker pool from
    ``batch_max_workers``.  ``config.rates`` becomes the processor's
    default rate set.

    Args:
        session: Session for sequential runs and the summary entry; a new
            one from the configured factory when omitted.
        config: Configuration to apply instead of the active one.
        clock: Optional clock; default SystemClock.
        attendance_source: Optional attendance source for every service
            the processor builds; default reads the attendance table.
    """
    from payroll_config import get_active_config

    config = config or get_active_config()
    configure_logging(level=config.log_level)
    init_engine_from_url(config.database_url)
    register_immutability_listeners()
    session_factory = get_session_factory()
    clock = clock or SystemClock()

    def service_factory(service_session: Session) -> WagePayrollService:
        return WagePayrollService.from_session(
            service_session, clock=clock, attendance_source=attendance_source,
        )

    logger.info(
        "bulk_processor_configured",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "max_workers": config.batch_max_workers,
        },
    )
    return BulkPayrollProcessor(
        session or session_factory(),
        clock,
        service_factory=service_factory,
        session_factory=session_factory,
        max_workers=config.batch_max_workers,
        rates=config.rates,
    )
