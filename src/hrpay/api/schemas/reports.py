"""Reporting DTOs — pure Pydantic, zero ORM imports."""
from __future__ import annotations
from decimal import Decimal
from pydantic import BaseModel


class StatementMonth(BaseModel):
    month: str
    payslip_id: int
    payable_days: Decimal
    total_working_days: int
    gross: Decimal
    pf_employee: Decimal
    professional_tax: Decimal
    net: Decimal


class SalaryStatement(BaseModel):
    tenant_id: str
    employee_id: int
    year: int
    months: list[StatementMonth]
    deductions: dict[str, Decimal]
    gross_total: Decimal
    deductions_total: Decimal
    net_total: Decimal
    missing_months: list[str]
