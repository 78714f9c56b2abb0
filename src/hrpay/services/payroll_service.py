"""Payrun lifecycle use-case service.

Every state-changing operation follows the same shape: take the payrun's lock,
re-read its status from the store and check the transition table. The inputs
are read next; the stored status is then claimed with a compare-and-set right
before the first write, since the in-process lock cannot see other workers.
Everything commits exactly once. Any failure rolls the whole operation back,
so a payrun is never left partially computed.
"""
from __future__ import annotations
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from hrpay.config import settings
from hrpay.domain.calculator import (
    PayrollPolicy, PayrollWarning, PayslipLine, WarningCode, calculate_payslip, round2,
)
from hrpay.domain.exceptions import ConflictError, HRPayError, NotFoundError, PersistenceError
from hrpay.domain.payrun_state import PayrunAction, PayrunStatus, next_status
from hrpay.domain.periods import format_month, parse_month
from hrpay.domain.ports import AttendanceAggregator, EmployeeDirectory, SalaryConfigProvider
from hrpay.infra.db.locks import PayrunLockRegistry, payrun_locks
from hrpay.infra.db.repositories.attendance_repository import SqlAttendanceAggregator
from hrpay.infra.db.repositories.employee_repository import SqlEmployeeDirectory
from hrpay.infra.db.repositories.payrun_repository import PayrunRepository
from hrpay.infra.db.repositories.salary_repository import SqlSalaryConfigProvider
from hrpay.infra.db.uow import UnitOfWork
from hrpay.models.payroll import Payrun, Payslip, utcnow
from hrpay.api.schemas.payroll import (
    ComputeResponse, PayrunCreate, PayrunEventList, PayrunEventRead, PayrunList, PayrunRead,
    PayslipList, PayslipRead, RecomputeResponse, WarningRead,
)

logger = logging.getLogger(__name__)


def _apply_line(payslip: Payslip, line: PayslipLine) -> Payslip:
    payslip.employee_id = line.employee_id
    payslip.basic = round2(line.basic)
    payslip.allowances = {name: str(round2(v)) for name, v in line.allowances.items()}
    payslip.allowances_total = round2(line.allowances_total)
    payslip.monthly_wage = round2(line.monthly_wage)
    payslip.total_working_days = line.total_working_days
    payslip.payable_days = round2(line.payable_days)
    payslip.gross = line.gross
    payslip.pf_employee = line.pf_employee
    payslip.pf_employer = line.pf_employer
    payslip.professional_tax = line.professional_tax
    payslip.total_deductions = line.total_deductions
    payslip.net = line.net
    payslip.computed_at = utcnow()
    return payslip


class PayrollService:
    def __init__(
        self,
        uow: UnitOfWork,
        *,
        employees: EmployeeDirectory | None = None,
        salaries: SalaryConfigProvider | None = None,
        attendance: AttendanceAggregator | None = None,
        policy: PayrollPolicy | None = None,
        locks: PayrunLockRegistry | None = None,
    ) -> None:
        self._uow = uow
        self._employees = employees or SqlEmployeeDirectory(uow.session)
        self._salaries = salaries or SqlSalaryConfigProvider(uow.session)
        self._attendance = attendance or SqlAttendanceAggregator(uow.session)
        self._policy = policy or PayrollPolicy.from_settings(settings)
        self._locks = locks or payrun_locks

    @property
    def _repo(self) -> PayrunRepository:
        return PayrunRepository(self._uow.session)

    @contextmanager
    def _locked(self, payrun_id: int) -> Iterator[Payrun]:
        """Yield the freshly re-read payrun under its lock; commit on clean exit."""
        with self._locks.hold(payrun_id):
            try:
                payrun = self._repo.get_for_update(payrun_id)
                if payrun is None:
                    raise NotFoundError(f"Payrun {payrun_id} not found")
                yield payrun
                self._uow.commit()
            except HRPayError:
                self._uow.rollback()
                raise
            except SQLAlchemyError as exc:
                self._uow.rollback()
                logger.exception("payrun %s: store failure, rolled back", payrun_id)
                raise PersistenceError(f"Payrun {payrun_id}: store failure ({exc.__class__.__name__})") from exc
            except Exception:
                self._uow.rollback()
                raise

    def _claim(self, payrun: Payrun, previous: PayrunStatus, action: PayrunAction) -> PayrunStatus:
        """Compare-and-set the stored status right before the first write.

        Another worker may have moved the payrun since it was read. The action
        is re-checked against the status found in the store; returns the status
        the write actually starts from.
        """
        repo = self._repo
        if repo.claim(payrun, previous):
            return previous
        current = repo.get_for_update(payrun.id).status
        next_status(current, action)
        if not repo.claim(payrun, current):
            raise ConflictError(f"Payrun {payrun.id} changed concurrently; retry")
        logger.info(
            "payrun %s: status moved %s -> %s before %s", payrun.id, previous.value, current.value, action.value,
        )
        return current

    def _ensure_payrun(self, payrun_id: int) -> Payrun:
        payrun = self._repo.get_by_id(payrun_id)
        if payrun is None:
            raise NotFoundError(f"Payrun {payrun_id} not found")
        return payrun

    # --- per-employee computation ---

    def _compute_employee(
        self, payrun: Payrun, employee_id: int,
    ) -> tuple[PayslipLine | None, list[PayrollWarning]]:
        month = payrun.period_month
        salary = self._salaries.get_salary_config(payrun.tenant_id, employee_id, month)
        if salary is None:
            return None, [PayrollWarning(
                WarningCode.MISSING_SALARY_CONFIG, employee_id,
                f"No salary configuration for employee {employee_id} in {format_month(month)}",
            )]
        aggregate = self._attendance.get_attendance_aggregate(payrun.tenant_id, employee_id, month)
        result = calculate_payslip(employee_id, salary, aggregate, self._policy)
        return result.line, [result.warning] if result.warning else []

    def _log_warnings(self, payrun_id: int, warnings: list[PayrollWarning]) -> None:
        for w in warnings:
            logger.warning("payrun %s: employee %s %s: %s", payrun_id, w.employee_id, w.code.value, w.message)

    # --- operations ---

    def create_payrun(self, payload: PayrunCreate) -> PayrunRead:
        period = parse_month(payload.month)
        repo = self._repo
        if repo.get_active_by_month(payload.tenant_id, period) is not None:
            raise ConflictError(f"Payrun for {payload.tenant_id} {format_month(period)} already exists")
        try:
            payrun = repo.create(
                tenant_id=payload.tenant_id, period_month=period, created_by=payload.created_by,
            )
            repo.add_event(
                payrun.id, action="create", to_status=PayrunStatus.DRAFT, actor=payload.created_by,
                meta={"month": format_month(period)},
            )
        except IntegrityError as exc:
            self._uow.rollback()
            raise ConflictError(
                f"Payrun for {payload.tenant_id} {format_month(period)} already exists"
            ) from exc
        self._uow.commit()
        logger.info("payrun %s: created for %s %s", payrun.id, payrun.tenant_id, format_month(period))
        return PayrunRead.model_validate(payrun)

    def compute_payrun(self, payrun_id: int, actor: str | None = None) -> ComputeResponse:
        """Regenerate every payslip of the payrun from scratch.

        Employees without salary configuration are excluded and reported;
        other data problems are clamped and reported. Only a store failure
        fails the operation.
        """
        with self._locked(payrun_id) as payrun:
            previous = payrun.status
            target = next_status(previous, PayrunAction.COMPUTE)

            payslips: list[Payslip] = []
            warnings: list[PayrollWarning] = []
            for employee_id in self._employees.list_employee_ids(payrun.tenant_id, payrun.period_month):
                line, emp_warnings = self._compute_employee(payrun, employee_id)
                warnings.extend(emp_warnings)
                if line is None:
                    continue
                payslip = Payslip(
                    payrun_id=payrun.id, tenant_id=payrun.tenant_id,
                    employee_id=employee_id, period_month=payrun.period_month,
                    status=target,
                )
                payslips.append(_apply_line(payslip, line))

            previous = self._claim(payrun, previous, PayrunAction.COMPUTE)
            repo = self._repo
            repo.replace_payslips(payrun.id, payslips)
            repo.set_status(payrun, target)
            repo.refresh_totals(payrun)
            repo.add_event(
                payrun.id, action=PayrunAction.COMPUTE.value, actor=actor,
                from_status=previous, to_status=target,
                meta={
                    "processed_count": len(payslips),
                    "warnings": [{"code": w.code.value, "employee_id": w.employee_id} for w in warnings],
                    "gross_total": str(payrun.gross_total),
                    "net_total": str(payrun.net_total),
                },
            )

        self._log_warnings(payrun_id, warnings)
        logger.info(
            "payrun %s: %s -> %s (%d payslips, %d warnings)",
            payrun_id, previous.value, target.value, len(payslips), len(warnings),
        )
        return ComputeResponse(
            payrun=PayrunRead.model_validate(payrun),
            processed_count=len(payslips),
            warnings=[WarningRead.model_validate(w) for w in warnings],
        )

    def recompute_payslip(self, payslip_id: int, actor: str | None = None) -> RecomputeResponse:
        """Recompute one payslip in place (same id) and re-derive the payrun totals."""
        payslip = self._repo.get_payslip(payslip_id)
        if payslip is None:
            raise NotFoundError(f"Payslip {payslip_id} not found")

        payrun_id = payslip.payrun_id
        with self._locked(payrun_id) as payrun:
            previous = payrun.status
            target = next_status(previous, PayrunAction.RECOMPUTE)
            line, warnings = self._compute_employee(payrun, payslip.employee_id)
            previous = self._claim(payrun, previous, PayrunAction.RECOMPUTE)
            # A concurrent compute may have replaced the payrun's payslips.
            payslip = self._uow.session.get(Payslip, payslip_id, populate_existing=True)
            if payslip is None or payslip.payrun_id != payrun.id:
                raise NotFoundError(f"Payslip {payslip_id} not found in payrun {payrun.id}")

            repo = self._repo
            if line is not None:
                _apply_line(payslip, line)
                payslip.status = target
                repo.upsert_payslip(payslip)
            repo.refresh_totals(payrun)
            repo.add_event(
                payrun.id, action=PayrunAction.RECOMPUTE.value, actor=actor,
                from_status=previous, to_status=target,
                meta={
                    "payslip_id": payslip.id,
                    "employee_id": payslip.employee_id,
                    "updated": line is not None,
                    "warnings": [w.code.value for w in warnings],
                },
            )

        self._log_warnings(payrun_id, warnings)
        logger.info("payrun %s: recomputed payslip %s", payrun_id, payslip_id)
        return RecomputeResponse(
            payslip=PayslipRead.model_validate(payslip),
            warnings=[WarningRead.model_validate(w) for w in warnings],
        )

    def validate_payrun(self, payrun_id: int, actor: str | None = None) -> PayrunRead:
        """Freeze the payslips and lock the totals."""
        with self._locked(payrun_id) as payrun:
            previous = payrun.status
            target = next_status(previous, PayrunAction.VALIDATE)
            previous = self._claim(payrun, previous, PayrunAction.VALIDATE)
            repo = self._repo
            repo.refresh_totals(payrun)
            repo.set_status(payrun, target, validated_by=actor, validated_at=utcnow())
            repo.add_event(
                payrun.id, action=PayrunAction.VALIDATE.value, actor=actor,
                from_status=previous, to_status=target,
                meta={"gross_total": str(payrun.gross_total), "net_total": str(payrun.net_total)},
            )
        logger.info("payrun %s: %s -> %s", payrun_id, previous.value, target.value)
        return PayrunRead.model_validate(payrun)

    def finalize_payrun(self, payrun_id: int, actor: str | None = None) -> PayrunRead:
        with self._locked(payrun_id) as payrun:
            previous = payrun.status
            target = next_status(previous, PayrunAction.FINALIZE)
            previous = self._claim(payrun, previous, PayrunAction.FINALIZE)
            repo = self._repo
            repo.set_status(payrun, target, done_at=utcnow())
            repo.add_event(
                payrun.id, action=PayrunAction.FINALIZE.value, actor=actor,
                from_status=previous, to_status=target,
            )
        logger.info("payrun %s: %s -> %s", payrun_id, previous.value, target.value)
        return PayrunRead.model_validate(payrun)

    def cancel_payrun(self, payrun_id: int, actor: str | None = None) -> PayrunRead:
        """Mark the payrun cancelled; its payslips stay for audit."""
        with self._locked(payrun_id) as payrun:
            previous = payrun.status
            target = next_status(previous, PayrunAction.CANCEL)
            previous = self._claim(payrun, previous, PayrunAction.CANCEL)
            repo = self._repo
            repo.set_status(payrun, target, cancelled_at=utcnow())
            repo.add_event(
                payrun.id, action=PayrunAction.CANCEL.value, actor=actor,
                from_status=previous, to_status=target,
            )
        logger.info("payrun %s: %s -> %s", payrun_id, previous.value, target.value)
        return PayrunRead.model_validate(payrun)

    # --- queries ---

    def get_payrun(self, payrun_id: int) -> PayrunRead:
        return PayrunRead.model_validate(self._ensure_payrun(payrun_id))

    def list_payruns(self, tenant_id: str | None = None, limit: int = 100, offset: int = 0) -> PayrunList:
        repo = self._repo
        payruns = repo.list_by_tenant(tenant_id, limit=limit, offset=offset)
        return PayrunList(
            items=[PayrunRead.model_validate(p) for p in payruns],
            total=repo.count_by_tenant(tenant_id),
        )

    def list_payslips(self, payrun_id: int) -> PayslipList:
        self._ensure_payrun(payrun_id)
        payslips = self._repo.list_payslips(payrun_id)
        return PayslipList(items=[PayslipRead.model_validate(p) for p in payslips], total=len(payslips))

    def get_payslip(self, payslip_id: int) -> PayslipRead:
        payslip = self._repo.get_payslip(payslip_id)
        if payslip is None:
            raise NotFoundError(f"Payslip {payslip_id} not found")
        return PayslipRead.model_validate(payslip)

    def list_events(self, payrun_id: int) -> PayrunEventList:
        self._ensure_payrun(payrun_id)
        events = self._repo.list_events(payrun_id)
        return PayrunEventList(items=[PayrunEventRead.model_validate(e) for e in events], total=len(events))

    def list_employee_payslips(self, tenant_id: str, employee_id: int) -> PayslipList:
        """An employee's payslips across payruns, cancelled payruns excluded."""
        payslips = self._repo.list_employee_payslips(
            tenant_id, employee_id, exclude=(PayrunStatus.CANCELLED,),
        )
        return PayslipList(items=[PayslipRead.model_validate(p) for p in payslips], total=len(payslips))
