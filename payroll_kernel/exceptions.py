"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll errors must be handled precisely.  A bulk run reports per-employee
failures by kind, an API maps them to responses, and tests assert on them.
Matching on message text is fragile, so:
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        calculator.calculate(employee, week, attendance, rates)
    except Exception as e:
        if "negative" in str(e):  # FRAGILE - message might change
            flag_attendance()

Example - RIGHT way (what this module enables):
    try:
        calculator.calculate(employee, week, attendance, rates)
    except InvalidAttendanceError as e:
        flag_attendance(e.field_name, e.value)
        api_response(code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from PayrollKernelError:

    PayrollKernelError (base)
    |
    +-- CalculationError
    |   +-- InvalidRateError
    |   +-- InvalidAttendanceError
    |   +-- MissingRateError
    |   +-- InvalidSalaryError
    |   +-- InvalidWeekRangeError
    |
    +-- AdjustmentValidationError
    |
    +-- RecordError
    |   +-- RecordNotFoundError
    |   +-- EmployeeNotFoundError
    |   +-- AlreadyProcessedError
    |   +-- PayrollNotProcessedError
    |
    +-- StoreError
    |   +-- AuditAppendError
    |
    +-- AuditError
    |   +-- AuditChainBrokenError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- BatchError
        +-- BatchConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Calculation     | INVALID_RATE                | Multiplier <= 0 or negative salary/rate
                | INVALID_ATTENDANCE          | Negative days/hours, fractional days
                | MISSING_RATE                | No pay rate resolvable for employee
                | INVALID_SALARY              | Daily salary <= 0 for special payments
                | INVALID_WEEK_RANGE          | Week start after week end
----------------|-----------------------------|-----------------------------------------
Adjustment      | VALIDATION_ERROR            | Amount <= 0 or empty description
----------------|-----------------------------|-----------------------------------------
Record          | NOT_FOUND                   | No record for the key / id
                | EMPLOYEE_NOT_FOUND          | Employee id not in the directory
                | ALREADY_PROCESSED           | Record is final (processed = true)
                | PAYROLL_NOT_PROCESSED       | Approval before processing
----------------|-----------------------------|-----------------------------------------
I/O             | STORE_ERROR                 | Database failure in the record store
                | AUDIT_APPEND_FAILED         | Audit entry could not be written
----------------|-----------------------------|-----------------------------------------
Audit           | AUDIT_CHAIN_BROKEN          | Hash chain validation failed
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Modifying an audit entry or adjustment
----------------|-----------------------------|-----------------------------------------
Batch           | BATCH_CONFIGURATION_ERROR   | Worker pool without a session factory

===============================================================================
HANDLING PATTERNS
===============================================================================

1. CALCULATION ERRORS are input errors.  Never retry, never default to zero:

    except CalculationError as e:
        return {"error": e.code, "detail": str(e)}

2. NOT FOUND is recoverable.  Callers treat it as "nothing to return":

    try:
        record = store.get(employee_id, week.start)
    except RecordNotFoundError:
        record = None

3. AUDIT APPEND FAILURES are correctness defects.  They are never swallowed;
   the payroll write that triggered them is rolled back.

===============================================================================
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Calculation exceptions


class CalculationError(PayrollKernelError):
    """Base exception for pure-calculation input errors."""

    code: str = "CALCULATION_ERROR"


class InvalidRateError(CalculationError):
    """A multiplier is not positive, or a pay rate is negative."""

    code: str = "INVALID_RATE"

    def __init__(self, rate_name: str, value: str):
        self.rate_name = rate_name
        self.value = value
        super().__init__(f"Invalid rate {rate_name}={value}")


class InvalidAttendanceError(CalculationError):
    """Attendance input is negative or malformed."""

    code: str = "INVALID_ATTENDANCE"

    def __init__(self, field_name: str, value: str, reason: str = "must be non-negative"):
        self.field_name = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid attendance {field_name}={value}: {reason}")


class MissingRateError(CalculationError):
    """No pay rate could be resolved for the employee."""

    code: str = "MISSING_RATE"

    def __init__(self, employee_id: str, salary_type: str):
        self.employee_id = employee_id
        self.salary_type = salary_type
        super().__init__(
            f"No {salary_type} rate resolvable for employee {employee_id}"
        )


class InvalidSalaryError(CalculationError):
    """Daily salary must be positive for special payments."""

    code: str = "INVALID_SALARY"

    def __init__(self, daily_salary: str):
        self.daily_salary = daily_salary
        super().__init__(f"Daily salary must be positive, got {daily_salary}")


class InvalidWeekRangeError(CalculationError):
    """Week range start is after its end."""

    code: str = "INVALID_WEEK_RANGE"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Week range start {start} is after end {end}")


# Adjustment exceptions


class AdjustmentValidationError(PayrollKernelError):
    """Manual adjustment input failed validation."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid adjustment {field_name}: {reason}")


# Record exceptions


class RecordError(PayrollKernelError):
    """Base exception for payroll record state errors."""

    code: str = "RECORD_ERROR"


class RecordNotFoundError(RecordError):
    """No record exists for the requested key."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, key: str):
        self.entity_type = entity_type
        self.key = key
        super().__init__(f"{entity_type} not found: {key}")


class EmployeeNotFoundError(RecordError):
    """Employee id is not known to the employee directory."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


class AlreadyProcessedError(RecordError):
    """Payroll record is processed and can no longer change."""

    code: str = "ALREADY_PROCESSED"

    def __init__(self, record_id: str, processed_by: str | None = None):
        self.record_id = record_id
        self.processed_by = processed_by
        super().__init__(
            f"Payroll record {record_id} is already processed"
            + (f" by {processed_by}" if processed_by else "")
        )


class PayrollNotProcessedError(RecordError):
    """Approval requested for a record that has not been processed."""

    code: str = "PAYROLL_NOT_PROCESSED"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Payroll record {record_id} has not been processed")


# I/O exceptions


class StoreError(PayrollKernelError):
    """Persistence failure while reading or writing payroll data."""

    code: str = "STORE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Store operation {operation} failed: {detail}")


class AuditAppendError(StoreError):
    """
    An audit entry could not be written.

    Audit completeness is a correctness property: this error always
    propagates.  When raised at the end of a bulk run, ``batch_result``
    carries the result of the already-completed batch.
    """

    code: str = "AUDIT_APPEND_FAILED"

    def __init__(self, action: str, detail: str, batch_result: object | None = None):
        self.action = action
        self.batch_result = batch_result
        super().__init__(f"audit_append[{action}]", detail)


# Audit exceptions


class AuditError(PayrollKernelError):
    """Base exception for audit-related errors."""

    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Audit hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, audit_entry_id: str, expected_hash: str, actual_hash: str):
        self.audit_entry_id = audit_entry_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Audit chain broken at {audit_entry_id}: "
            f"expected {expected_hash}, found {actual_hash}"
        )


# Immutability exceptions


class ImmutabilityError(PayrollKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Audit entries are never updated or deleted; adjustments are never
    updated (explicit removal goes through AdjustmentLedger.remove).
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Batch exceptions


class BatchError(PayrollKernelError):
    """Base exception for bulk processing errors."""

    code: str = "BATCH_ERROR"


class BatchConfigurationError(BatchError):
    """Bulk processor was configured inconsistently."""

    code: str = "BATCH_CONFIGURATION_ERROR"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid batch configuration: {reason}")
