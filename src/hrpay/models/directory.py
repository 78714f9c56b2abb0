"""Tables backing the default employee, salary and attendance adapters.

These belong to the surrounding HR application; the payroll engine only reads
them through ``hrpay.domain.ports``.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel
from hrpay.models.payroll import utcnow


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    HALF_DAY = "half_day"
    ABSENT = "absent"
    PAID_LEAVE = "paid_leave"
    UNPAID_LEAVE = "unpaid_leave"


class Employee(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    name: str
    email: Optional[str] = None
    active: bool = True
    joined_on: Optional[date] = None
    left_on: Optional[date] = None


class SalaryConfig(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("employee_id", "effective_from", name="uq_salaryconfig_employee_effective"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    employee_id: int = Field(foreign_key="employee.id", index=True)
    effective_from: date
    basic: Decimal = Field(max_digits=12, decimal_places=2)
    allowances: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    pf_rate: Optional[Decimal] = Field(default=None, max_digits=6, decimal_places=4)
    professional_tax: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    created_at: datetime = Field(default_factory=utcnow)


class AttendanceDay(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("employee_id", "day", name="uq_attendanceday_employee_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    employee_id: int = Field(foreign_key="employee.id", index=True)
    day: date = Field(index=True)
    status: AttendanceStatus
