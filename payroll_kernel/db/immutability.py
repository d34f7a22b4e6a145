"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Payroll history must be tamper-evident.  Once an audit entry is written,
once an adjustment is authorized, once a weekly record is processed, the
facts they carry must not silently change.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events and check the rules:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |                                                        ^
         v                                                        |
    [before_delete event] --> _check_*_delete() -----------------+
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, we raise ImmutabilityViolationError and the flush is
aborted.  The database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable              | Allowed
--------------------|-----------------------------|-------------------------------
AuditEntryModel     | ALWAYS                      | Nothing (purge uses bulk DELETE)
AdjustmentModel     | ALWAYS for UPDATE           | DELETE via AdjustmentLedger.remove
PayrollRecordModel  | After processed = true      | Approval columns, audit metadata

Bulk statements (``session.execute(delete(...))``) do not fire mapper
events.  AuditTrail.purge() relies on that as its explicit override.

===============================================================================
USAGE
===============================================================================

    from payroll_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()

===============================================================================
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from payroll_kernel.exceptions import ImmutabilityViolationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str, **extra):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
            **extra,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_audit_entry_immutability(mapper, connection, target):
    _blocked(
        "AuditEntry", str(target.id), "UPDATE",
        "Audit entries are immutable and cannot be modified",
    )


def _check_audit_entry_delete(mapper, connection, target):
    _blocked(
        "AuditEntry", str(target.id), "DELETE",
        "Audit entries cannot be deleted individually",
    )


def _check_adjustment_immutability(mapper, connection, target):
    _blocked(
        "Adjustment", str(target.id), "UPDATE",
        "Adjustments are immutable; remove and re-add instead",
    )


def _was_processed(target) -> bool:
    """True when the record was already processed before this flush."""
    history = get_history(target, "processed")
    if history.deleted:
        return bool(history.deleted[0])
    if history.added:
        # Being set in this flush: false -> true is the processing itself
        return False
    return bool(target.processed)


def _check_payroll_record_immutability(mapper, connection, target):
    """
    Freeze payroll figures once a record is processed.

    The processing transition itself (processed false -> true) is allowed,
    as are later changes to the approval columns and audit metadata.
    """
    if not _was_processed(target):
        return

    allowed = target.MUTABLE_AFTER_PROCESSING
    for attr in inspect(target).attrs:
        if attr.key in allowed:
            continue
        if attr.history.has_changes():
            _blocked(
                "PayrollRecord", str(target.id), "UPDATE",
                f"Cannot modify field '{attr.key}' on a processed payroll record",
                field=attr.key,
            )

    processed_history = get_history(target, "processed")
    if processed_history.added and not processed_history.added[0]:
        _blocked(
            "PayrollRecord", str(target.id), "UPDATE",
            "Processed payroll records cannot be reopened",
            field="processed",
        )


def _check_payroll_record_delete(mapper, connection, target):
    if target.processed:
        _blocked(
            "PayrollRecord", str(target.id), "DELETE",
            "Processed payroll records cannot be deleted",
        )


def _listeners():
    from payroll_kernel.models.adjustment import AdjustmentModel
    from payroll_kernel.models.audit_entry import AuditEntryModel
    from payroll_kernel.models.payroll_record import PayrollRecordModel

    return (
        (AuditEntryModel, "before_update", _check_audit_entry_immutability),
        (AuditEntryModel, "before_delete", _check_audit_entry_delete),
        (AdjustmentModel, "before_update", _check_adjustment_immutability),
        (PayrollRecordModel, "before_update", _check_payroll_record_immutability),
        (PayrollRecordModel, "before_delete", _check_payroll_record_delete),
    )


def register_immutability_listeners():
    """Register all immutability enforcement listeners (idempotent)."""
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement listeners.

    WARNING: Only use this in tests that intentionally violate immutability
    to verify detection.
    """
    for target, event_name, fn in _listeners():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
