"""Salary statement: only payruns marked done are reported."""
from decimal import Decimal


def _run_to(client, month: str, *steps: str) -> int:
    payrun_id = client.post("/payruns", json={"tenant_id": "acme", "month": month}).json()["id"]
    for step in steps:
        assert client.post(f"/payruns/{payrun_id}/{step}").status_code == 200
    return payrun_id


def test_statement_counts_done_payruns_only(client, seed_employee):
    emp = seed_employee(months=("2025-03", "2025-04", "2025-05", "2025-06"), present_days=22)
    _run_to(client, "2025-03", "compute", "cancel")
    _run_to(client, "2025-04", "compute", "validate", "finalize")
    _run_to(client, "2025-05", "compute", "validate")
    _run_to(client, "2025-06", "compute")

    resp = client.get(
        "/reports/salary-statement", params={"tenant_id": "acme", "employee_id": emp, "year": 2025},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert [m["month"] for m in body["months"]] == ["2025-04"]
    assert Decimal(body["gross_total"]) == Decimal("25000")
    assert Decimal(body["net_total"]) == Decimal("22400")
    assert Decimal(body["deductions"]["provident_fund"]) == Decimal("2400")
    assert Decimal(body["deductions"]["professional_tax"]) == Decimal("200")
    assert Decimal(body["deductions_total"]) == Decimal("2600")
    assert len(body["missing_months"]) == 11
    assert "2025-04" not in body["missing_months"]
    assert "2025-03" in body["missing_months"]


def test_statement_for_year_without_payroll_is_empty(client, seed_employee):
    emp = seed_employee()
    body = client.get(
        "/reports/salary-statement", params={"tenant_id": "acme", "employee_id": emp, "year": 2024},
    ).json()
    assert body["months"] == []
    assert Decimal(body["gross_total"]) == 0
    assert len(body["missing_months"]) == 12


def test_statement_is_tenant_scoped(client, seed_employee):
    emp = seed_employee()
    _run_to(client, "2025-04", "compute", "validate", "finalize")
    body = client.get(
        "/reports/salary-statement", params={"tenant_id": "globex", "employee_id": emp, "year": 2025},
    ).json()
    assert body["months"] == []


def test_statement_rejects_bad_year(client):
    resp = client.get("/reports/salary-statement", params={"tenant_id": "acme", "employee_id": 1, "year": 0})
    assert resp.status_code == 422
