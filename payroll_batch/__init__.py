"""
payroll_batch -- Bulk weekly payroll runs.

Runs the single-employee calculation path over many employees with
per-employee SAVEPOINT isolation, live progress, cooperative
cancellation, an optional bounded worker pool, and one summary audit
entry per run.

Architecture:
    payroll_batch/ is a top-level package.  Nothing in payroll_kernel,
    payroll_engines or payroll_modules imports from payroll_batch.
"""

from payroll_batch.domain.types import (
    UNHANDLED_EXCEPTION,
    BatchItemError,
    BatchProgress,
    BatchResult,
    BatchStatus,
    CancellationToken,
)
from payroll_batch.services.processor import BulkPayrollProcessor, build_bulk_processor

__all__ = [
    "UNHANDLED_EXCEPTION",
    "BatchItemError",
    "BatchProgress",
    "BatchResult",
    "BatchStatus",
    "BulkPayrollProcessor",
    "CancellationToken",
    "build_bulk_processor",
]
