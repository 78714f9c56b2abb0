"""Shared test fixtures.

  use_test_engine  — redirects UoW + infra layer to a temp-file SQLite DB.
  client           — FastAPI TestClient wired to the test engine.
  inputs           — in-memory employee/salary/attendance collaborators.
  make_service     — PayrollService factory bound to ``inputs``.
  seed_employee    — inserts an employee, salary config and attendance rows.
"""
from datetime import date
from decimal import Decimal
import pytest
from sqlmodel import SQLModel, create_engine
from hrpay.config import TaxSlabSetting
from hrpay.domain.calculator import AttendanceAggregate, PayrollPolicy, SalarySnapshot


class FakePayrollInputs:
    """One object satisfying EmployeeDirectory, SalaryConfigProvider and AttendanceAggregator."""

    def __init__(self) -> None:
        self.employee_ids: list[int] = []
        self.salaries: dict[int, SalarySnapshot] = {}
        self.attendance: dict[int, AttendanceAggregate] = {}
        self.calls: list[tuple[str, int]] = []
        self.on_salary_lookup = None  # optional hook, called before each salary read

    def add(
        self,
        employee_id: int,
        *,
        basic="20000",
        allowances=None,
        working_days: int = 22,
        payable_days="22",
        with_salary: bool = True,
    ) -> None:
        if employee_id not in self.employee_ids:
            self.employee_ids.append(employee_id)
        if with_salary:
            self.salaries[employee_id] = SalarySnapshot(
                basic=Decimal(str(basic)),
                allowances={k: Decimal(str(v)) for k, v in (allowances or {"HRA": "5000"}).items()},
            )
        else:
            self.salaries.pop(employee_id, None)
        self.attendance[employee_id] = AttendanceAggregate(working_days, Decimal(str(payable_days)))

    def list_employee_ids(self, tenant_id: str, month: date) -> list[int]:
        return sorted(self.employee_ids)

    def get_salary_config(self, tenant_id: str, employee_id: int, month: date):
        self.calls.append(("salary", employee_id))
        if self.on_salary_lookup is not None:
            self.on_salary_lookup(employee_id)
        return self.salaries.get(employee_id)

    def get_attendance_aggregate(self, tenant_id: str, employee_id: int, month: date):
        self.calls.append(("attendance", employee_id))
        return self.attendance.get(employee_id, AttendanceAggregate(22, Decimal("0")))


@pytest.fixture
def use_test_engine(tmp_path, monkeypatch):
    """Monkeypatch infra/db engine references to an isolated temp-file SQLite DB."""
    db_path = tmp_path / "test_hrpay.db"
    test_engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False, "timeout": 30},
    )

    import hrpay.models  # noqa: F401 — register all ORM mappers
    SQLModel.metadata.create_all(test_engine)

    monkeypatch.setattr("hrpay.infra.db.engine.engine", test_engine)
    monkeypatch.setattr("hrpay.infra.db.uow.engine", test_engine)

    yield test_engine

    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def client(use_test_engine):
    """FastAPI TestClient backed by the isolated test engine."""
    from fastapi.testclient import TestClient
    from hrpay.api.app import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def inputs() -> FakePayrollInputs:
    return FakePayrollInputs()


@pytest.fixture
def make_service(inputs):
    from hrpay.services.payroll_service import PayrollService

    def _make(uow, source=None, locks=None):
        source = source or inputs
        return PayrollService(
            uow, employees=source, salaries=source, attendance=source, policy=PayrollPolicy(), locks=locks,
        )

    return _make


@pytest.fixture
def payroll_defaults(monkeypatch):
    """Pin the settings the default SQL adapters and policy read."""
    monkeypatch.setattr("hrpay.config.settings.WORK_WEEK", [0, 1, 2, 3, 4])
    monkeypatch.setattr("hrpay.config.settings.HALF_DAY_WEIGHT", Decimal("0.5"))
    monkeypatch.setattr("hrpay.config.settings.PF_RATE", Decimal("0.12"))
    monkeypatch.setattr("hrpay.config.settings.PF_EMPLOYER_RATE", Decimal("0.12"))
    monkeypatch.setattr(
        "hrpay.config.settings.PROFESSIONAL_TAX_SLABS",
        [TaxSlabSetting(min_gross=Decimal("0"), amount=Decimal("200"))],
    )


@pytest.fixture
def seed_employee(use_test_engine, payroll_defaults):
    """Insert an employee with a salary config and ``present_days`` weekdays of attendance."""
    from hrpay.domain.periods import parse_month, working_days
    from hrpay.infra.db.repositories.attendance_repository import SqlAttendanceAggregator
    from hrpay.infra.db.repositories.employee_repository import SqlEmployeeDirectory
    from hrpay.infra.db.repositories.salary_repository import SqlSalaryConfigProvider
    from hrpay.infra.db.uow import UnitOfWork
    from hrpay.models.directory import AttendanceStatus

    def _seed(
        tenant="acme", name="Asha", *, basic="20000", hra="5000",
        present_days=22, months=("2025-04",), with_salary=True, **kwargs,
    ) -> int:
        with UnitOfWork() as uow:
            s = uow.session
            emp = SqlEmployeeDirectory(s).create(tenant_id=tenant, name=name, **kwargs)
            if with_salary:
                SqlSalaryConfigProvider(s).create(
                    tenant_id=tenant, employee_id=emp.id, effective_from=date(2025, 1, 1),
                    basic=Decimal(basic), allowances={"HRA": Decimal(hra)},
                )
            attendance = SqlAttendanceAggregator(s)
            for month in months:
                for day in working_days(parse_month(month), [0, 1, 2, 3, 4])[:present_days]:
                    attendance.record(
                        tenant_id=tenant, employee_id=emp.id, day=day, status=AttendanceStatus.PRESENT,
                    )
            return emp.id

    return _seed
