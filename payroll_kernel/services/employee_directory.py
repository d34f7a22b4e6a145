"""
EmployeeDirectory -- read access to employee pay profiles.

``EmployeeDirectory`` is the Protocol; ``SqlEmployeeDirectory`` reads the
``employee_profiles`` table.  Unknown ids raise EmployeeNotFoundError.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from payroll_kernel.domain.dtos import Employee
from payroll_kernel.exceptions import EmployeeNotFoundError, StoreError
from payroll_kernel.models.employee import EmployeeProfile


@runtime_checkable
class EmployeeDirectory(Protocol):
    def get(self, employee_id: str) -> Employee: ...


class SqlEmployeeDirectory:
    def __init__(self, session: Session):
        self._session = session

    def get(self, employee_id: str) -> Employee:
        try:
            profile = self._session.execute(
                select(EmployeeProfile).where(EmployeeProfile.employee_id == employee_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError("employee_lookup", str(exc)) from exc
        if profile is None:
            raise EmployeeNotFoundError(employee_id)
        return Employee.from_model(profile)
