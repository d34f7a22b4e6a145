"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow through the payroll
    pipeline: Employee and RateConfiguration (inputs), WeekRange and
    AttendanceTotals (period and time data), PayrollRecord (persistence
    boundary), Adjustment and AuditEntry (append-only facts).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  from_model() class methods exist as boundary
    converters and are only invoked from the service layer.

Invariants enforced:
    - WeekRange.start <= WeekRange.end (InvalidWeekRangeError)
    - Wage amounts and rates are Decimal; floats are rejected on direct
      construction (TypeError)
    - PayrollRecord identity is (employee_id, week_start)

Failure modes:
    - ValueError on an unknown salary type
    - InvalidWeekRangeError on an inverted week range
    - AttendanceTotals deliberately does NOT validate: malformed attendance
      must reach the calculator, which rejects it with InvalidAttendanceError.

Data flow:
    Employee + WeekRange + AttendanceTotals + RateConfiguration
        -> WeeklyPayCalculation -> PayrollRecord
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping
from uuid import UUID

from payroll_kernel.db.types import round_money, round_rate, to_decimal
from payroll_kernel.exceptions import InvalidWeekRangeError

if TYPE_CHECKING:
    from payroll_kernel.models.adjustment import AdjustmentModel
    from payroll_kernel.models.audit_entry import AuditEntryModel
    from payroll_kernel.models.employee import EmployeeProfile
    from payroll_kernel.models.payroll_record import PayrollRecordModel


ZERO = Decimal("0")


def _optional_decimal(value: Any, field_name: str) -> Decimal | None:
    if value is None:
        return None
    return to_decimal(value, field_name)


def _parse_decimal(value: Any, field_name: str) -> Decimal:
    """Boundary parser for plain mappings (YAML, request payloads)."""
    if isinstance(value, float):
        value = str(value)
    return to_decimal(value, field_name)


# =============================================================================
# Enumerations
# =============================================================================


class SalaryType(str, Enum):
    """How an employee is paid: per worked hour or per worked day."""

    HOURLY = "hourly"
    DAILY = "daily"


class AdjustmentType(str, Enum):
    BONUS = "bonus"
    DEDUCTION = "deduction"


class AdjustmentCategory(str, Enum):
    PERFORMANCE = "performance"
    OVERTIME_BONUS = "overtime_bonus"
    TRANSPORT = "transport"
    FOOD = "food"
    SAFETY = "safety"
    ADVANCE = "advance"
    LOAN = "loan"
    OTHER = "other"


class AuditAction(str, Enum):
    """
    Closed set of auditable payroll actions.

    Contract:
        Every state-changing payroll operation maps to exactly one action.
        ``bulk_calculate`` is the single summary entry of a bulk run and is
        appended after the per-employee ``calculate_payroll`` entries.
    """

    CALCULATE_PAYROLL = "calculate_payroll"
    BULK_CALCULATE = "bulk_calculate"
    CALCULATE_AGUINALDO = "calculate_aguinaldo"
    CALCULATE_SEVERANCE = "calculate_severance"
    PROCESS_PAYROLL = "process_payroll"
    ADJUSTMENT_ADDED = "adjustment_added"
    EXPORT = "export"
    APPROVE_PAYROLL = "approve_payroll"
    MODIFY_RATES = "modify_rates"


# =============================================================================
# Employee and period inputs
# =============================================================================


@dataclass(frozen=True)
class Employee:
    """
    Employee pay profile, referenced by id.

    Contract:
        Owned by the employee directory; the payroll engine only reads it.
        The rate matching ``salary_type`` is the one used.  Non-negativity
        of the rates is checked by the calculator (InvalidRateError).
    """

    id: str
    salary_type: SalaryType
    hourly_rate: Decimal | None = None
    daily_salary: Decimal | None = None
    site_id: str | None = None
    supervisor_id: str | None = None
    full_name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "salary_type", SalaryType(self.salary_type))
        object.__setattr__(
            self, "hourly_rate", _optional_decimal(self.hourly_rate, "hourly_rate"),
        )
        object.__setattr__(
            self, "daily_salary", _optional_decimal(self.daily_salary, "daily_salary"),
        )

    @classmethod
    def from_model(cls, model: EmployeeProfile) -> Employee:
        return cls(
            id=model.employee_id,
            salary_type=SalaryType(model.salary_type),
            hourly_rate=model.hourly_rate,
            daily_salary=model.daily_salary,
            site_id=model.site_id,
            supervisor_id=model.supervisor_id,
            full_name=model.full_name,
        )


@dataclass(frozen=True)
class WeekRange:
    """
    Closed date interval a payroll record covers.

    Any closed interval is accepted; ``containing()`` builds the
    conventional Monday-Sunday week.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidWeekRangeError(self.start.isoformat(), self.end.isoformat())

    @classmethod
    def containing(cls, day: date) -> WeekRange:
        """Monday-Sunday week that contains ``day``."""
        if isinstance(day, datetime):
            day = day.date()
        monday = day - timedelta(days=day.weekday())
        return cls(start=monday, end=monday + timedelta(days=6))

    @property
    def days(self) -> int:
        """Inclusive number of calendar days in the range."""
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


@dataclass(frozen=True)
class AttendanceTotals:
    """
    Aggregated attendance of one employee for one week.

    Not validated on construction.  ``zero()`` stands for "no data".
    """

    worked_days: int = 0
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO

    @classmethod
    def zero(cls) -> AttendanceTotals:
        return cls()

    @property
    def is_empty(self) -> bool:
        return (
            self.worked_days == 0
            and self.regular_hours == 0
            and self.overtime_hours == 0
        )


@dataclass(frozen=True)
class RateConfiguration:
    """
    Configurable multipliers and the hourly fallback rate.

    Contract:
        Pure data.  The numbers are validated by the calculator so that a
        bad configuration surfaces as a calculation failure
        (InvalidRateError), never as a silent default.

    Non-goals:
        night_differential and holiday_premium are carried for rate-change
        auditing; the weekly calculation does not apply them.
    """

    regular_rate: Decimal | None = None
    overtime_multiplier: Decimal = Decimal("1.5")
    night_differential: Decimal = Decimal("1.25")
    holiday_premium: Decimal = Decimal("2.0")

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "regular_rate", _optional_decimal(self.regular_rate, "regular_rate"),
        )
        for name in ("overtime_multiplier", "night_differential", "holiday_premium"):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RateConfiguration:
        """Build from a plain mapping; absent keys keep their defaults."""
        kwargs: dict[str, Any] = {}
        if data.get("regular_rate") is not None:
            kwargs["regular_rate"] = _parse_decimal(data["regular_rate"], "regular_rate")
        for name in ("overtime_multiplier", "night_differential", "holiday_premium"):
            if data.get(name) is not None:
                kwargs[name] = _parse_decimal(data[name], name)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, str | None]:
        return {
            "regular_rate": str(self.regular_rate) if self.regular_rate is not None else None,
            "overtime_multiplier": str(self.overtime_multiplier),
            "night_differential": str(self.night_differential),
            "holiday_premium": str(self.holiday_premium),
        }


# =============================================================================
# Persistence boundary
# =============================================================================


@dataclass(frozen=True)
class PayrollRecord:
    """
    One employee's payroll for one week.

    Contract:
        Keyed by (employee_id, week_start).
        gross_pay = base_pay + overtime_pay + bonuses
        net_pay   = gross_pay - deductions
        ``processed`` goes false -> true exactly once; a processed record is
        final and is never recalculated.
    """

    employee_id: str
    week_start: date
    week_end: date
    salary_type: SalaryType
    worked_days: int
    regular_hours: Decimal
    overtime_hours: Decimal
    base_pay: Decimal
    overtime_rate: Decimal
    overtime_pay: Decimal
    bonuses: Decimal
    deductions: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    record_id: UUID | None = None
    processed: bool = False
    processed_by: str | None = None
    processed_at: datetime | None = None
    calculated_by: str | None = None
    calculated_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None

    @property
    def week(self) -> WeekRange:
        return WeekRange(self.week_start, self.week_end)

    @property
    def approved(self) -> bool:
        return self.approved_at is not None

    @classmethod
    def from_model(cls, model: PayrollRecordModel) -> PayrollRecord:
        # Stored columns carry 9 places; report at money / rate precision
        return cls(
            record_id=model.id,
            employee_id=model.employee_id,
            week_start=model.week_start,
            week_end=model.week_end,
            salary_type=SalaryType(model.salary_type),
            worked_days=model.worked_days,
            regular_hours=model.regular_hours,
            overtime_hours=model.overtime_hours,
            base_pay=round_money(model.base_pay),
            overtime_rate=round_rate(model.overtime_rate),
            overtime_pay=round_money(model.overtime_pay),
            bonuses=round_money(model.bonuses),
            deductions=round_money(model.deductions),
            gross_pay=round_money(model.gross_pay),
            net_pay=round_money(model.net_pay),
            processed=model.processed,
            processed_by=model.processed_by,
            processed_at=model.processed_at,
            calculated_by=model.calculated_by,
            calculated_at=model.calculated_at,
            approved_by=model.approved_by,
            approved_at=model.approved_at,
        )


@dataclass(frozen=True)
class AdjustmentRequest:
    """Caller input for AdjustmentLedger.add(); validated by the ledger."""

    employee_id: str
    week_start: date
    type: AdjustmentType
    category: AdjustmentCategory
    amount: Decimal
    description: str


@dataclass(frozen=True)
class Adjustment:
    """A manual bonus or deduction.  Immutable once created."""

    adjustment_id: UUID
    employee_id: str
    week_start: date
    type: AdjustmentType
    category: AdjustmentCategory
    amount: Decimal
    description: str
    authorized_by: str
    created_at: datetime
    seq: int
    payroll_id: UUID | None = None

    @classmethod
    def from_model(cls, model: AdjustmentModel) -> Adjustment:
        return cls(
            adjustment_id=model.id,
            employee_id=model.employee_id,
            week_start=model.week_start,
            type=AdjustmentType(model.adjustment_type),
            category=AdjustmentCategory(model.category),
            amount=round_money(model.amount),
            description=model.description,
            authorized_by=model.authorized_by,
            created_at=model.created_at,
            seq=model.seq,
            payroll_id=model.payroll_id,
        )


@dataclass(frozen=True)
class AuditEntryRequest:
    """
    Input for AuditTrail.append().

    ``employee_ref`` is an employee id, or "<n> employees" for bulk runs.
    ``payload`` is hashed into the chain; it must be JSON-serializable
    after canonicalization (Decimal, date and UUID are handled).
    """

    action: AuditAction
    user: str
    employee_ref: str | None = None
    employee_count: int = 1
    amount: Decimal | None = None
    details: str = ""
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "action", AuditAction(self.action))
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))


@dataclass(frozen=True)
class AuditEntry:
    """An appended, hash-chained audit entry."""

    entry_id: UUID
    seq: int
    action: AuditAction
    employee_ref: str | None
    employee_count: int
    amount: Decimal | None
    occurred_at: datetime
    user: str
    details: str
    payload: Mapping[str, Any]
    payload_hash: str
    prev_hash: str | None
    hash: str

    @classmethod
    def from_model(cls, model: AuditEntryModel) -> AuditEntry:
        return cls(
            entry_id=model.id,
            seq=model.seq,
            action=AuditAction(model.action),
            employee_ref=model.employee_ref,
            employee_count=model.employee_count,
            amount=round_money(model.amount) if model.amount is not None else None,
            occurred_at=model.occurred_at,
            user=model.user,
            details=model.details,
            payload=MappingProxyType(dict(model.payload or {})),
            payload_hash=model.payload_hash,
            prev_hash=model.prev_hash,
            hash=model.hash,
        )
