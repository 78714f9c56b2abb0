"""Payrun lifecycle endpoints."""
from fastapi import APIRouter, Depends
from hrpay.api.deps import get_uow
from hrpay.api.schemas.payroll import (
    ComputeResponse, PayrunCreate, PayrunEventList, PayrunList, PayrunRead, PayslipList,
    TransitionRequest,
)
from hrpay.infra.db.uow import UnitOfWork
from hrpay.services.payroll_service import PayrollService

router = APIRouter(prefix="/payruns", tags=["payruns"])


def _actor(payload: TransitionRequest | None) -> str | None:
    return payload.actor if payload else None


@router.post("", response_model=PayrunRead, status_code=201)
def create_payrun(payload: PayrunCreate, uow: UnitOfWork = Depends(get_uow)) -> PayrunRead:
    return PayrollService(uow).create_payrun(payload)


@router.get("", response_model=PayrunList)
def list_payruns(
    tenant_id: str | None = None,
    limit: int = 100,
    offset: int = 0,
    uow: UnitOfWork = Depends(get_uow),
) -> PayrunList:
    return PayrollService(uow).list_payruns(tenant_id, limit=limit, offset=offset)


@router.get("/{payrun_id}", response_model=PayrunRead)
def get_payrun(payrun_id: int, uow: UnitOfWork = Depends(get_uow)) -> PayrunRead:
    return PayrollService(uow).get_payrun(payrun_id)


@router.post("/{payrun_id}/compute", response_model=ComputeResponse)
def compute_payrun(
    payrun_id: int, payload: TransitionRequest | None = None, uow: UnitOfWork = Depends(get_uow),
) -> ComputeResponse:
    return PayrollService(uow).compute_payrun(payrun_id, actor=_actor(payload))


@router.post("/{payrun_id}/validate", response_model=PayrunRead)
def validate_payrun(
    payrun_id: int, payload: TransitionRequest | None = None, uow: UnitOfWork = Depends(get_uow),
) -> PayrunRead:
    return PayrollService(uow).validate_payrun(payrun_id, actor=_actor(payload))


@router.post("/{payrun_id}/finalize", response_model=PayrunRead)
def finalize_payrun(
    payrun_id: int, payload: TransitionRequest | None = None, uow: UnitOfWork = Depends(get_uow),
) -> PayrunRead:
    return PayrollService(uow).finalize_payrun(payrun_id, actor=_actor(payload))


@router.post("/{payrun_id}/cancel", response_model=PayrunRead)
def cancel_payrun(
    payrun_id: int, payload: TransitionRequest | None = None, uow: UnitOfWork = Depends(get_uow),
) -> PayrunRead:
    return PayrollService(uow).cancel_payrun(payrun_id, actor=_actor(payload))


@router.get("/{payrun_id}/payslips", response_model=PayslipList)
def list_payslips(payrun_id: int, uow: UnitOfWork = Depends(get_uow)) -> PayslipList:
    return PayrollService(uow).list_payslips(payrun_id)


@router.get("/{payrun_id}/events", response_model=PayrunEventList)
def list_events(payrun_id: int, uow: UnitOfWork = Depends(get_uow)) -> PayrunEventList:
    return PayrollService(uow).list_events(payrun_id)
