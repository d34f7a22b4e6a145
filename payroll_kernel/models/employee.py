"""
Module: payroll_kernel.models.employee
Responsibility: ORM persistence for the read-side inputs of payroll: employee
    pay profiles and daily attendance rows.
Architecture position: Kernel > Models.  May import from db/base.py only.

These tables are owned by the HR / time-keeping side.  The payroll engine
only reads them through SqlEmployeeDirectory and SqlAttendanceSource.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base


class EmployeeProfile(Base):
    """Pay profile of one employee."""

    __tablename__ = "employee_profiles"

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    salary_type: Mapped[str] = mapped_column(String(20), nullable=False)
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    daily_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    site_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    supervisor_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<EmployeeProfile {self.employee_id} {self.salary_type}>"


class AttendanceRecord(Base):
    """
    One employee's attendance on one day.

    A day counts as worked when it has a clock-in or positive total hours.
    """

    __tablename__ = "attendance_records"

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="uq_attendance_employee_day"),
        Index("idx_attendance_employee_date", "employee_id", "work_date"),
    )

    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    clock_in: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    clock_out: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    total_hours: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    overtime_hours: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    def __repr__(self) -> str:
        return f"<Attendance {self.employee_id} {self.work_date}>"
