"""Employee-facing payslip listing."""
from fastapi import APIRouter, Depends
from hrpay.api.deps import get_uow
from hrpay.api.schemas.payroll import PayslipList
from hrpay.infra.db.uow import UnitOfWork
from hrpay.services.payroll_service import PayrollService

router = APIRouter(prefix="/employees/{employee_id}", tags=["employees"])


@router.get("/payslips", response_model=PayslipList)
def list_employee_payslips(
    employee_id: int, tenant_id: str, uow: UnitOfWork = Depends(get_uow),
) -> PayslipList:
    return PayrollService(uow).list_employee_payslips(tenant_id, employee_id)
