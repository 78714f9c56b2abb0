"""Payrun store tables: payruns, their payslips, and the transition audit trail."""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from sqlalchemy import JSON, Column, Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel
from hrpay.domain.payrun_state import PayrunStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Payrun(SQLModel, table=True):
    """One tenant's payroll batch for one calendar month.

    ``gross_total`` / ``net_total`` / ``employee_count`` are derived from the
    current payslips and rewritten whenever payslips change.
    """

    __table_args__ = (
        # One live payrun per tenant and month; cancelled ones stay for audit.
        Index(
            "ux_payrun_tenant_month_active", "tenant_id", "period_month",
            unique=True,
            sqlite_where=text("status != 'CANCELLED'"),
            postgresql_where=text("status != 'CANCELLED'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(index=True)
    period_month: date = Field(index=True)
    status: PayrunStatus = Field(default=PayrunStatus.DRAFT)
    gross_total: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    net_total: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    employee_count: int = Field(default=0)
    created_by: Optional[str] = None
    validated_by: Optional[str] = None
    validated_at: Optional[datetime] = None
    done_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Payslip(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("payrun_id", "employee_id", name="uq_payslip_payrun_employee"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    payrun_id: int = Field(foreign_key="payrun.id", index=True)
    tenant_id: str = Field(index=True)
    employee_id: int = Field(index=True)
    period_month: date

    # Salary snapshot, copied at computation time
    basic: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    allowances: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    allowances_total: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    monthly_wage: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)

    total_working_days: int = 0
    payable_days: Decimal = Field(default=Decimal("0"), max_digits=6, decimal_places=2)

    gross: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    pf_employee: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    pf_employer: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    professional_tax: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    total_deductions: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    net: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)

    status: PayrunStatus = Field(default=PayrunStatus.COMPUTED)
    computed_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class PayrunEvent(SQLModel, table=True):
    """Append-only record of every operation applied to a payrun."""

    id: Optional[int] = Field(default=None, primary_key=True)
    payrun_id: int = Field(foreign_key="payrun.id", index=True)
    action: str
    actor: Optional[str] = None
    from_status: Optional[str] = None
    to_status: str
    meta: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
