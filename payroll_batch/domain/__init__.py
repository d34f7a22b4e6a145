"""
payroll_batch.domain -- Pure types for bulk runs.

ZERO I/O.  All result types are frozen dataclasses.
"""

from payroll_batch.domain.types import (
    UNHANDLED_EXCEPTION,
    BatchItemError,
    BatchProgress,
    BatchResult,
    BatchStatus,
    CancellationToken,
)

__all__ = [
    "UNHANDLED_EXCEPTION",
    "BatchItemError",
    "BatchProgress",
    "BatchResult",
    "BatchStatus",
    "CancellationToken",
]
