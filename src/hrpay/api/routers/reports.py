"""Reporting endpoints."""
from fastapi import APIRouter, Depends, Query
from hrpay.api.deps import get_uow
from hrpay.api.schemas.reports import SalaryStatement
from hrpay.infra.db.uow import UnitOfWork
from hrpay.services.reports_service import ReportsService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/salary-statement", response_model=SalaryStatement)
def salary_statement(
    tenant_id: str,
    employee_id: int,
    year: int = Query(ge=1900, le=9999),
    uow: UnitOfWork = Depends(get_uow),
) -> SalaryStatement:
    return ReportsService(uow).salary_statement(tenant_id, employee_id, year)
