"""Reporting use-case service.

Only payslips of ``done`` payruns count towards reports; cancelled payruns are
never aggregated.
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from hrpay.domain.payrun_state import PayrunStatus
from hrpay.domain.periods import format_month
from hrpay.infra.db.uow import UnitOfWork
from hrpay.infra.db.repositories.payrun_repository import PayrunRepository
from hrpay.api.schemas.reports import SalaryStatement, StatementMonth


class ReportsService:
    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def salary_statement(self, tenant_id: str, employee_id: int, year: int) -> SalaryStatement:
        payslips = PayrunRepository(self._uow.session).list_payslips_in_year(
            tenant_id, employee_id, year, status=PayrunStatus.DONE,
        )

        months = [
            StatementMonth(
                month=format_month(p.period_month),
                payslip_id=p.id,
                payable_days=p.payable_days,
                total_working_days=p.total_working_days,
                gross=p.gross,
                pf_employee=p.pf_employee,
                professional_tax=p.professional_tax,
                net=p.net,
            )
            for p in payslips
        ]
        zero = Decimal("0")
        deductions = {
            "provident_fund": sum((p.pf_employee for p in payslips), zero),
            "professional_tax": sum((p.professional_tax for p in payslips), zero),
        }
        covered = {m.month for m in months}
        missing = [
            format_month(date(year, n, 1)) for n in range(1, 13)
            if format_month(date(year, n, 1)) not in covered
        ]
        return SalaryStatement(
            tenant_id=tenant_id,
            employee_id=employee_id,
            year=year,
            months=months,
            deductions=deductions,
            gross_total=sum((p.gross for p in payslips), zero),
            deductions_total=sum(deductions.values(), zero),
            net_total=sum((p.net for p in payslips), zero),
            missing_months=missing,
        )
