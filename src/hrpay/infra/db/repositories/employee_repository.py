"""SQL-backed EmployeeDirectory over the ``employee`` table."""
from __future__ import annotations
from datetime import date
from sqlalchemy import or_
from sqlmodel import Session, select
from hrpay.domain.periods import month_end
from hrpay.models.directory import Employee


class SqlEmployeeDirectory:
    def __init__(self, session: Session) -> None:
        self._s = session

    def get_by_id(self, employee_id: int) -> Employee | None:
        return self._s.get(Employee, employee_id)

    def list_employee_ids(self, tenant_id: str, month: date) -> list[int]:
        """Active employees employed for at least one day of *month*."""
        start, end = month.replace(day=1), month_end(month)
        stmt = (
            select(Employee.id)
            .where(
                Employee.tenant_id == tenant_id,
                Employee.active == True,  # noqa: E712
                or_(Employee.joined_on == None, Employee.joined_on <= end),  # noqa: E711
                or_(Employee.left_on == None, Employee.left_on >= start),  # noqa: E711
            )
            .order_by(Employee.id)
        )
        return list(self._s.exec(stmt).all())

    def create(
        self, *, tenant_id: str, name: str, email: str | None = None,
        joined_on: date | None = None, left_on: date | None = None, active: bool = True,
    ) -> Employee:
        employee = Employee(
            tenant_id=tenant_id, name=name, email=email,
            joined_on=joined_on, left_on=left_on, active=active,
        )
        self._s.add(employee)
        self._s.flush()
        return employee
