"""Contracts for the collaborators the payroll engine consumes.

Implementations live elsewhere (``hrpay.infra.db.repositories`` ships
SQL-backed defaults); the service only depends on these protocols.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from hrpay.domain.calculator import AttendanceAggregate, SalarySnapshot


@runtime_checkable
class EmployeeDirectory(Protocol):
    def list_employee_ids(self, tenant_id: str, month: date) -> list[int]:
        """Return ids of the employees in payroll scope for *month*, ascending."""
        ...


@runtime_checkable
class SalaryConfigProvider(Protocol):
    def get_salary_config(
        self, tenant_id: str, employee_id: int, month: date,
    ) -> SalarySnapshot | None:
        """Return the configuration effective for *month*, or ``None`` if absent."""
        ...


@runtime_checkable
class AttendanceAggregator(Protocol):
    def get_attendance_aggregate(
        self, tenant_id: str, employee_id: int, month: date,
    ) -> AttendanceAggregate:
        """Return working days in *month* and the employee's payable days."""
        ...
