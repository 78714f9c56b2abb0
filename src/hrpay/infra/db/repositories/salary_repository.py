"""SQL-backed SalaryConfigProvider over the ``salaryconfig`` table."""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from sqlmodel import Session, select
from hrpay.domain.calculator import SalarySnapshot, to_decimal
from hrpay.domain.periods import month_end
from hrpay.models.directory import SalaryConfig


class SqlSalaryConfigProvider:
    def __init__(self, session: Session) -> None:
        self._s = session

    def get_effective(self, tenant_id: str, employee_id: int, month: date) -> SalaryConfig | None:
        """Latest config that is in effect by the last day of *month*."""
        return self._s.exec(
            select(SalaryConfig)
            .where(
                SalaryConfig.tenant_id == tenant_id,
                SalaryConfig.employee_id == employee_id,
                SalaryConfig.effective_from <= month_end(month),
            )
            .order_by(SalaryConfig.effective_from.desc(), SalaryConfig.id.desc())
        ).first()

    def get_salary_config(self, tenant_id: str, employee_id: int, month: date) -> SalarySnapshot | None:
        cfg = self.get_effective(tenant_id, employee_id, month)
        if cfg is None:
            return None
        return SalarySnapshot(
            basic=to_decimal(cfg.basic),
            allowances={name: to_decimal(v) for name, v in (cfg.allowances or {}).items()},
            pf_rate=None if cfg.pf_rate is None else to_decimal(cfg.pf_rate),
            professional_tax=None if cfg.professional_tax is None else to_decimal(cfg.professional_tax),
        )

    def create(
        self,
        *,
        tenant_id: str,
        employee_id: int,
        effective_from: date,
        basic: Decimal,
        allowances: dict[str, Decimal] | None = None,
        pf_rate: Decimal | None = None,
        professional_tax: Decimal | None = None,
    ) -> SalaryConfig:
        cfg = SalaryConfig(
            tenant_id=tenant_id,
            employee_id=employee_id,
            effective_from=effective_from,
            basic=to_decimal(basic),
            # JSON column: amounts kept as strings to stay exact
            allowances={name: str(to_decimal(v)) for name, v in (allowances or {}).items()},
            pf_rate=pf_rate,
            professional_tax=professional_tax,
        )
        self._s.add(cfg)
        self._s.flush()
        return cfg
