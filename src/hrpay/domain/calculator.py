"""Payslip calculation: one employee, one month, no I/O.

The calculator is a pure function of its inputs so that recomputing a payrun
with unchanged salary and attendance data reproduces every monetary field
exactly.

Rounding policy: round-half-up to 2 decimal places, applied once per derived
amount (gross, each deduction). Net is an exact difference of rounded amounts
and is never rounded again.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class WarningCode(str, Enum):
    MISSING_SALARY_CONFIG = "MISSING_SALARY_CONFIG"
    DATA_INCONSISTENCY = "DATA_INCONSISTENCY"
    NEGATIVE_NET = "NEGATIVE_NET"


@dataclass(frozen=True, slots=True)
class PayrollWarning:
    """A per-employee problem recorded during compute; returned, never raised."""

    code: WarningCode
    employee_id: int
    message: str


@dataclass(frozen=True, slots=True)
class SalarySnapshot:
    """Salary configuration as read at computation time.

    Copied into the payslip so later edits to the live configuration never
    change a historical payslip. ``pf_rate`` / ``professional_tax`` override
    the tenant policy when set.
    """

    basic: Decimal
    allowances: Mapping[str, Decimal] = field(default_factory=dict)
    pf_rate: Decimal | None = None
    professional_tax: Decimal | None = None


@dataclass(frozen=True, slots=True)
class AttendanceAggregate:
    total_working_days: int
    payable_days: Decimal


@dataclass(frozen=True, slots=True)
class ProfessionalTaxSlab:
    """Professional tax charged when gross is at least ``min_gross``."""

    min_gross: Decimal
    amount: Decimal


@dataclass(frozen=True, slots=True)
class PayrollPolicy:
    pf_rate: Decimal = Decimal("0.12")
    pf_employer_rate: Decimal = Decimal("0.12")
    professional_tax_slabs: tuple[ProfessionalTaxSlab, ...] = (
        ProfessionalTaxSlab(min_gross=ZERO, amount=Decimal("200")),
    )

    @classmethod
    def from_settings(cls, cfg) -> "PayrollPolicy":
        return cls(
            pf_rate=to_decimal(cfg.PF_RATE),
            pf_employer_rate=to_decimal(cfg.PF_EMPLOYER_RATE),
            professional_tax_slabs=tuple(
                ProfessionalTaxSlab(to_decimal(s.min_gross), to_decimal(s.amount))
                for s in cfg.PROFESSIONAL_TAX_SLABS
            ),
        )

    def professional_tax_for(self, gross: Decimal) -> Decimal:
        """Amount of the highest band whose lower bound does not exceed *gross*."""
        amount = ZERO
        for slab in sorted(self.professional_tax_slabs, key=lambda s: s.min_gross):
            if gross >= slab.min_gross:
                amount = slab.amount
        return amount


@dataclass(frozen=True, slots=True)
class PayslipLine:
    employee_id: int
    basic: Decimal
    allowances: Mapping[str, Decimal]
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

    @property
    def deductions(self) -> dict[str, Decimal]:
        return {"provident_fund": self.pf_employee, "professional_tax": self.professional_tax}

    @property
    def payable_ratio(self) -> Decimal:
        if self.total_working_days <= 0:
            return ZERO
        return self.payable_days / self.total_working_days


@dataclass(frozen=True, slots=True)
class CalculationResult:
    line: PayslipLine
    warning: PayrollWarning | None = None


def calculate_payslip(
    employee_id: int,
    salary: SalarySnapshot,
    attendance: AttendanceAggregate,
    policy: PayrollPolicy,
) -> CalculationResult:
    """Compute one payslip line.

    Out-of-range inputs are clamped to the nearest valid bound and reported as a
    single ``DATA_INCONSISTENCY`` warning; a negative net (with otherwise clean
    inputs) is reported as ``NEGATIVE_NET``. Never raises for bad data.
    """
    issues: list[str] = []

    # Inputs are quantized once so the stored snapshot reproduces the stored gross.
    basic = round2(to_decimal(salary.basic))
    if basic <= ZERO:
        issues.append(f"basic must be positive, got {basic}")
        basic = max(basic, ZERO)

    allowances: dict[str, Decimal] = {}
    for name, raw in sorted(salary.allowances.items()):
        amount = round2(to_decimal(raw))
        if amount < ZERO:
            issues.append(f"allowance '{name}' is negative ({amount}); using 0")
            amount = ZERO
        allowances[name] = amount
    allowances_total = sum(allowances.values(), ZERO)
    monthly_wage = basic + allowances_total

    total_days = int(attendance.total_working_days)
    payable = to_decimal(attendance.payable_days)
    if total_days <= 0:
        issues.append(f"total working days must be positive, got {total_days}")
        total_days = 0
        payable = ZERO
        gross = ZERO
    else:
        if payable < ZERO:
            issues.append(f"payable days {payable} below 0; clamped")
            payable = ZERO
        elif payable > total_days:
            issues.append(f"payable days {payable} exceed {total_days} working days; clamped")
            payable = Decimal(total_days)
        payable = round2(payable)
        gross = round2(monthly_wage * payable / total_days)

    pf_rate = policy.pf_rate if salary.pf_rate is None else to_decimal(salary.pf_rate)
    pf_employee = round2(basic * pf_rate)
    pf_employer = round2(basic * policy.pf_employer_rate)
    if salary.professional_tax is None:
        professional_tax = round2(policy.professional_tax_for(gross))
    else:
        professional_tax = round2(to_decimal(salary.professional_tax))

    total_deductions = pf_employee + professional_tax
    net = gross - total_deductions

    line = PayslipLine(
        employee_id=employee_id,
        basic=basic,
        allowances=MappingProxyType(allowances),
        allowances_total=allowances_total,
        monthly_wage=monthly_wage,
        total_working_days=total_days,
        payable_days=payable,
        gross=gross,
        pf_employee=pf_employee,
        pf_employer=pf_employer,
        professional_tax=professional_tax,
        total_deductions=total_deductions,
        net=net,
    )

    warning = None
    if issues:
        warning = PayrollWarning(WarningCode.DATA_INCONSISTENCY, employee_id, "; ".join(issues))
    elif net < ZERO:
        warning = PayrollWarning(
            WarningCode.NEGATIVE_NET, employee_id,
            f"net pay is negative ({net}): gross {gross} < deductions {total_deductions}",
        )
    return CalculationResult(line=line, warning=warning)
