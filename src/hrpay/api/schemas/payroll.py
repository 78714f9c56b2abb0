"""Payroll DTOs — pure Pydantic, zero ORM imports."""
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, computed_field, field_validator
from hrpay.domain.calculator import WarningCode
from hrpay.domain.payrun_state import PayrunStatus
from hrpay.domain.periods import format_month, parse_month


class PayrunCreate(BaseModel):
    tenant_id: str
    month: str
    created_by: str | None = None

    @field_validator("tenant_id")
    @classmethod
    def tenant_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("tenant_id must not be empty")
        return v.strip()

    @field_validator("month")
    @classmethod
    def month_format(cls, v: str) -> str:
        return format_month(parse_month(v))


class TransitionRequest(BaseModel):
    actor: str | None = None


class PayrunRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    tenant_id: str
    period_month: date
    status: PayrunStatus
    gross_total: Decimal
    net_total: Decimal
    employee_count: int
    created_by: str | None = None
    validated_by: str | None = None
    validated_at: datetime | None = None
    done_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field
    @property
    def month(self) -> str:
        return format_month(self.period_month)


class PayrunList(BaseModel):
    items: list[PayrunRead]
    total: int


class PayslipRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    payrun_id: int
    tenant_id: str
    employee_id: int
    period_month: date
    basic: Decimal
    allowances: dict[str, Decimal]
    allowances_total: Decimal
    monthly_wage: Decimal
    total_working_days: int
    payable_days: Decimal
    gross: Decimal
    pf_employee: Decimal
    pf_employer: Decimal
    professional_tax: Decimal
    total_deductions: Decimal
    net: Decimal
    status: PayrunStatus
    computed_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field
    @property
    def deductions(self) -> dict[str, Decimal]:
        return {"provident_fund": self.pf_employee, "professional_tax": self.professional_tax}


class PayslipList(BaseModel):
    items: list[PayslipRead]
    total: int


class WarningRead(BaseModel):
    model_config = {"from_attributes": True}

    code: WarningCode
    employee_id: int
    message: str


class ComputeResponse(BaseModel):
    payrun: PayrunRead
    processed_count: int
    warnings: list[WarningRead]


class RecomputeResponse(BaseModel):
    payslip: PayslipRead
    warnings: list[WarningRead]


class PayrunEventRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    payrun_id: int
    action: str
    actor: str | None = None
    from_status: str | None = None
    to_status: str
    meta: dict
    created_at: datetime | None = None


class PayrunEventList(BaseModel):
    items: list[PayrunEventRead]
    total: int
