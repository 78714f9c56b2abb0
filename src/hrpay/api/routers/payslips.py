"""Payslip endpoints."""
from fastapi import APIRouter, Depends
from hrpay.api.deps import get_uow
from hrpay.api.schemas.payroll import PayslipRead, RecomputeResponse, TransitionRequest
from hrpay.infra.db.uow import UnitOfWork
from hrpay.services.payroll_service import PayrollService

router = APIRouter(prefix="/payslips", tags=["payslips"])


@router.get("/{payslip_id}", response_model=PayslipRead)
def get_payslip(payslip_id: int, uow: UnitOfWork = Depends(get_uow)) -> PayslipRead:
    return PayrollService(uow).get_payslip(payslip_id)


@router.post("/{payslip_id}/recompute", response_model=RecomputeResponse)
def recompute_payslip(
    payslip_id: int, payload: TransitionRequest | None = None, uow: UnitOfWork = Depends(get_uow),
) -> RecomputeResponse:
    actor = payload.actor if payload else None
    return PayrollService(uow).recompute_payslip(payslip_id, actor=actor)
