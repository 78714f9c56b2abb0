import sys
import typer
from pathlib import Path
from sqlalchemy.engine import make_url
from hrpay.config import settings
from hrpay.logging import logger, get_run_id

app = typer.Typer(no_args_is_help=True)

@app.callback()
def main():
    """
    HR payroll engine CLI.
    """
    pass

@app.command(name="doctor")
def doctor():
    """
    Check payroll configuration and database health.
    """
    from hrpay.domain.calculator import PayrollPolicy

    logger.info("Running doctor check...")

    failures: list[str] = []
    passed = 0

    print("\n🩺 Payroll Engine Doctor\n")

    # ── Check 1: Environment / Interpreter ──────────────────────────────────
    print("[Environment]")
    print(f"  Python: {sys.version.split()[0]}")
    print(f"  Run ID: {get_run_id()}")
    passed += 1

    # ── Check 2: Payroll policy ──────────────────────────────────────────────
    print("\n[Payroll Policy]")
    try:
        policy = PayrollPolicy.from_settings(settings)
    except (ValueError, TypeError) as e:
        print(f"  Policy:                      ❌ {e}")
        failures.append("Payroll settings could not be parsed — check PF_RATE / PROFESSIONAL_TAX_SLABS")
        policy = None
    if policy is not None:
        rates_ok = 0 <= policy.pf_rate < 1 and 0 <= policy.pf_employer_rate < 1
        if rates_ok:
            print(f"  PF_RATE:                     ✅ {policy.pf_rate}")
            print(f"  PF_EMPLOYER_RATE:            ✅ {policy.pf_employer_rate}")
            passed += 1
        else:
            print(f"  PF rates:                    ❌ {policy.pf_rate} / {policy.pf_employer_rate}")
            failures.append("PF rates must be fractions in [0, 1), e.g. 0.12")
        for slab in sorted(policy.professional_tax_slabs, key=lambda s: s.min_gross):
            print(f"  Professional tax from {slab.min_gross}: {slab.amount}")

    work_week = sorted(set(settings.WORK_WEEK))
    if work_week and all(0 <= d <= 6 for d in work_week):
        print(f"  WORK_WEEK:                   ✅ {work_week}")
        passed += 1
    else:
        print(f"  WORK_WEEK:                   ❌ {settings.WORK_WEEK}")
        failures.append("WORK_WEEK must list weekday indexes 0 (Mon) .. 6 (Sun)")

    # ── Check 3: Database location ───────────────────────────────────────────
    print("\n[Database]")
    url = make_url(settings.DATABASE_URL)
    print(f"  Backend: {url.get_backend_name()}")
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        db_dir = Path(url.database).parent
        if db_dir.exists() or db_dir == Path("."):
            print(f"  {db_dir}/                      ✅ Found")
            passed += 1
        else:
            print(f"  {db_dir}/                      ⚠️  Missing (db init will create it)")
            passed += 1
    else:
        passed += 1

    # ── Summary ──────────────────────────────────────────────────────────────
    total = passed + len(failures)
    print(f"\n{'─' * 50}")
    if failures:
        print(f"Result: {passed}/{total} checks passed\n")
        for msg in failures:
            print(f"  ❌ {msg}")
        print()
        raise typer.Exit(code=1)
    else:
        print(f"Result: {passed}/{total} checks passed — all good ✅")
        print()


db_app = typer.Typer(help="Database management commands.")
app.add_typer(db_app, name="db")

@db_app.command("init")
def init():
    """Initialize the database tables."""
    from hrpay.db import init_db
    try:
        init_db()
        logger.info("Database initialized successfully.")
        print("✅ Database initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        print(f"❌ Failed: {e}")
        raise typer.Exit(code=1)


payrun_app = typer.Typer(help="Payrun lifecycle commands.")
app.add_typer(payrun_app, name="payrun")


def _run(op):
    """Run *op(service)* in one unit of work; print domain errors and exit 1."""
    from hrpay.domain.exceptions import HRPayError
    from hrpay.infra.db.uow import UnitOfWork
    from hrpay.services.payroll_service import PayrollService

    try:
        with UnitOfWork() as uow:
            return op(PayrollService(uow))
    except HRPayError as e:
        print(f"❌ {e.code}: {e.message}")
        raise typer.Exit(code=1)


def _print_payrun(p) -> None:
    print(f"Payrun {p.id}  {p.tenant_id}  {p.month}  [{p.status.value}]")
    print(f"  employees: {p.employee_count}   gross: {p.gross_total}   net: {p.net_total}")


@payrun_app.command("create")
def payrun_create(
    tenant: str = typer.Option(..., help="Tenant id"),
    month: str = typer.Option(..., help="Payroll month, YYYY-MM"),
    actor: str | None = typer.Option(None, help="Who is creating the payrun"),
):
    """Create a draft payrun for a month."""
    from hrpay.api.schemas.payroll import PayrunCreate
    try:
        payload = PayrunCreate(tenant_id=tenant, month=month, created_by=actor)
    except ValueError as e:
        print(f"❌ {e}")
        raise typer.Exit(code=1)
    _print_payrun(_run(lambda svc: svc.create_payrun(payload)))


@payrun_app.command("compute")
def payrun_compute(payrun_id: int, actor: str | None = typer.Option(None)):
    """Compute (or recompute) every payslip of a payrun."""
    result = _run(lambda svc: svc.compute_payrun(payrun_id, actor=actor))
    _print_payrun(result.payrun)
    print(f"✅ {result.processed_count} payslip(s) computed")
    for w in result.warnings:
        print(f"  ⚠️  employee {w.employee_id}: {w.code.value} — {w.message}")


@payrun_app.command("validate")
def payrun_validate(payrun_id: int, actor: str | None = typer.Option(None)):
    """Validate a computed payrun (freezes payslips)."""
    _print_payrun(_run(lambda svc: svc.validate_payrun(payrun_id, actor=actor)))


@payrun_app.command("finalize")
def payrun_finalize(payrun_id: int, actor: str | None = typer.Option(None)):
    """Mark a validated payrun as done."""
    _print_payrun(_run(lambda svc: svc.finalize_payrun(payrun_id, actor=actor)))


@payrun_app.command("cancel")
def payrun_cancel(payrun_id: int, actor: str | None = typer.Option(None)):
    """Cancel a draft or computed payrun."""
    _print_payrun(_run(lambda svc: svc.cancel_payrun(payrun_id, actor=actor)))


@payrun_app.command("show")
def payrun_show(payrun_id: int):
    """Show a payrun and its transition history."""
    payrun = _run(lambda svc: svc.get_payrun(payrun_id))
    events = _run(lambda svc: svc.list_events(payrun_id))
    _print_payrun(payrun)
    for e in events.items:
        who = f" by {e.actor}" if e.actor else ""
        print(f"  {e.created_at:%Y-%m-%d %H:%M}  {e.action:<10} {e.from_status or '-'} → {e.to_status}{who}")


@payrun_app.command("payslips")
def payrun_payslips(payrun_id: int):
    """List the payslips of a payrun."""
    payslips = _run(lambda svc: svc.list_payslips(payrun_id))
    if not payslips.items:
        print("No payslips.")
        return
    print(f"{'ID':>6} {'EMP':>6} {'DAYS':>11} {'GROSS':>12} {'DEDUCT':>10} {'NET':>12}")
    for p in payslips.items:
        days = f"{p.payable_days}/{p.total_working_days}"
        print(f"{p.id:>6} {p.employee_id:>6} {days:>11} {p.gross:>12} {p.total_deductions:>10} {p.net:>12}")

if __name__ == "__main__":
    app()
