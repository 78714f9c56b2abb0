"""Repository for payruns, payslips and payrun events.

No business logic; caller owns the transaction. Every method here composes
inside one session so a whole state change commits or rolls back together.
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from sqlalchemy import delete, func, update
from sqlmodel import Session, select
from hrpay.domain.payrun_state import PayrunStatus
from hrpay.models.payroll import Payrun, PayrunEvent, Payslip, utcnow


class PayrunRepository:
    def __init__(self, session: Session) -> None:
        self._s = session

    # --- Payrun ---

    def get_by_id(self, payrun_id: int) -> Payrun | None:
        return self._s.get(Payrun, payrun_id)

    def get_for_update(self, payrun_id: int) -> Payrun | None:
        """Re-read the payrun from the database under a row lock."""
        stmt = (
            select(Payrun)
            .where(Payrun.id == payrun_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._s.exec(stmt).first()

    def claim(self, payrun: Payrun, expected: PayrunStatus) -> bool:
        """Touch the payrun only if its stored status is still *expected*.

        Returns False when another transaction changed the status since it was
        read. On SQLite the UPDATE also takes the database write lock, held
        until this transaction ends.
        """
        now = utcnow()
        result = self._s.execute(
            update(Payrun)
            .where(Payrun.id == payrun.id, Payrun.status == expected)
            .values(updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False
        payrun.updated_at = now
        return True

    def get_active_by_month(self, tenant_id: str, period_month: date) -> Payrun | None:
        return self._s.exec(
            select(Payrun).where(
                Payrun.tenant_id == tenant_id,
                Payrun.period_month == period_month,
                Payrun.status != PayrunStatus.CANCELLED,
            )
        ).first()

    def list_by_tenant(self, tenant_id: str | None, limit: int = 100, offset: int = 0) -> list[Payrun]:
        stmt = select(Payrun)
        if tenant_id:
            stmt = stmt.where(Payrun.tenant_id == tenant_id)
        stmt = stmt.order_by(Payrun.period_month.desc(), Payrun.id.desc()).offset(offset).limit(limit)
        return list(self._s.exec(stmt).all())

    def count_by_tenant(self, tenant_id: str | None) -> int:
        stmt = select(func.count()).select_from(Payrun)
        if tenant_id:
            stmt = stmt.where(Payrun.tenant_id == tenant_id)
        return self._s.exec(stmt).one()

    def create(self, *, tenant_id: str, period_month: date, created_by: str | None = None) -> Payrun:
        payrun = Payrun(tenant_id=tenant_id, period_month=period_month, created_by=created_by)
        self._s.add(payrun)
        self._s.flush()  # get generated PK without committing
        return payrun

    def set_status(self, payrun: Payrun, status: PayrunStatus, **stamps) -> Payrun:
        payrun.status = status
        for name, value in stamps.items():
            setattr(payrun, name, value)
        payrun.updated_at = utcnow()
        self._s.add(payrun)
        self._s.execute(
            update(Payslip)
            .where(Payslip.payrun_id == payrun.id)
            .values(status=status, updated_at=payrun.updated_at)
        )
        self._s.flush()
        return payrun

    def refresh_totals(self, payrun: Payrun) -> Payrun:
        """Re-derive totals from the payrun's current payslips."""
        payslips = self.list_payslips(payrun.id)
        payrun.gross_total = sum((p.gross for p in payslips), Decimal("0"))
        payrun.net_total = sum((p.net for p in payslips), Decimal("0"))
        payrun.employee_count = len(payslips)
        payrun.updated_at = utcnow()
        self._s.add(payrun)
        self._s.flush()
        return payrun

    # --- Payslip ---

    def get_payslip(self, payslip_id: int) -> Payslip | None:
        return self._s.get(Payslip, payslip_id)

    def list_payslips(self, payrun_id: int) -> list[Payslip]:
        return list(self._s.exec(
            select(Payslip).where(Payslip.payrun_id == payrun_id).order_by(Payslip.employee_id)
        ).all())

    def replace_payslips(self, payrun_id: int, payslips: list[Payslip]) -> list[Payslip]:
        """Delete every payslip of the payrun, then insert *payslips*."""
        self._s.execute(delete(Payslip).where(Payslip.payrun_id == payrun_id))
        for p in payslips:
            p.payrun_id = payrun_id
            self._s.add(p)
        self._s.flush()
        return payslips

    def upsert_payslip(self, payslip: Payslip) -> Payslip:
        payslip.updated_at = utcnow()
        self._s.add(payslip)
        self._s.flush()
        return payslip

    def list_employee_payslips(
        self, tenant_id: str, employee_id: int, *, exclude: tuple[PayrunStatus, ...] = (),
    ) -> list[Payslip]:
        stmt = (
            select(Payslip)
            .join(Payrun, Payrun.id == Payslip.payrun_id)
            .where(Payslip.tenant_id == tenant_id, Payslip.employee_id == employee_id)
        )
        if exclude:
            stmt = stmt.where(Payrun.status.not_in(exclude))
        stmt = stmt.order_by(Payslip.period_month.desc())
        return list(self._s.exec(stmt).all())

    def list_payslips_in_year(
        self, tenant_id: str, employee_id: int, year: int, *, status: PayrunStatus,
    ) -> list[Payslip]:
        stmt = (
            select(Payslip)
            .join(Payrun, Payrun.id == Payslip.payrun_id)
            .where(
                Payslip.tenant_id == tenant_id,
                Payslip.employee_id == employee_id,
                Payslip.period_month >= date(year, 1, 1),
                Payslip.period_month <= date(year, 12, 31),
                Payrun.status == status,
            )
            .order_by(Payslip.period_month)
        )
        return list(self._s.exec(stmt).all())

    # --- PayrunEvent ---

    def add_event(
        self,
        payrun_id: int,
        *,
        action: str,
        to_status: PayrunStatus,
        from_status: PayrunStatus | None = None,
        actor: str | None = None,
        meta: dict | None = None,
    ) -> PayrunEvent:
        event = PayrunEvent(
            payrun_id=payrun_id,
            action=action,
            actor=actor,
            from_status=from_status.value if from_status else None,
            to_status=to_status.value,
            meta=meta or {},
        )
        self._s.add(event)
        self._s.flush()
        return event

    def list_events(self, payrun_id: int) -> list[PayrunEvent]:
        return list(self._s.exec(
            select(PayrunEvent).where(PayrunEvent.payrun_id == payrun_id).order_by(PayrunEvent.id)
        ).all())
