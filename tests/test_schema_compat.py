from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel

from hrpay.infra.db.schema_compat import ACTIVE_PAYRUN_INDEX, ensure_schema_compat

LEGACY_PAYRUN = """
CREATE TABLE payrun (
    id INTEGER PRIMARY KEY,
    tenant_id VARCHAR NOT NULL,
    period_month DATE NOT NULL,
    status VARCHAR NOT NULL,
    gross_total NUMERIC(14, 2) NOT NULL DEFAULT 0,
    net_total NUMERIC(14, 2) NOT NULL DEFAULT 0,
    employee_count INTEGER NOT NULL DEFAULT 0
)
"""


def _index_names(db_path: Path, table_name: str) -> set[str]:
    engine = create_engine(f"sqlite:///{db_path}")
    with engine.connect() as conn:
        rows = conn.execute(text(f"PRAGMA index_list({table_name})")).fetchall()
    return {row[1] for row in rows}


def _insert_payrun(conn, payrun_id: int, status: str) -> None:
    conn.execute(
        text(
            "INSERT INTO payrun (id, tenant_id, period_month, status) "
            "VALUES (:id, 'acme', '2025-04-01', :status)"
        ),
        {"id": payrun_id, "status": status},
    )


@pytest.fixture
def legacy_db(tmp_path):
    db_path = tmp_path / "legacy.db"
    engine = create_engine(f"sqlite:///{db_path}")
    with engine.begin() as conn:
        conn.execute(text(LEGACY_PAYRUN))
    yield engine, db_path
    engine.dispose()


def test_ensure_schema_compat_adds_active_payrun_index(legacy_db):
    engine, db_path = legacy_db
    assert ACTIVE_PAYRUN_INDEX not in _index_names(db_path, "payrun")

    ensure_schema_compat(engine)
    assert ACTIVE_PAYRUN_INDEX in _index_names(db_path, "payrun")

    # idempotent: running again should not fail and should keep schema intact
    ensure_schema_compat(engine)
    assert ACTIVE_PAYRUN_INDEX in _index_names(db_path, "payrun")


def test_upgraded_index_allows_one_live_payrun_per_month(legacy_db):
    engine, _ = legacy_db
    ensure_schema_compat(engine)

    with engine.begin() as conn:
        _insert_payrun(conn, 1, "CANCELLED")
        _insert_payrun(conn, 2, "DRAFT")

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            _insert_payrun(conn, 3, "COMPUTED")


def test_ensure_schema_compat_refuses_existing_duplicates(legacy_db):
    engine, db_path = legacy_db
    with engine.begin() as conn:
        _insert_payrun(conn, 1, "DRAFT")
        _insert_payrun(conn, 2, "VALIDATED")

    with pytest.raises(IntegrityError):
        ensure_schema_compat(engine)
    assert ACTIVE_PAYRUN_INDEX not in _index_names(db_path, "payrun")


def test_ensure_schema_compat_leaves_fresh_schema_alone(tmp_path):
    import hrpay.models  # noqa: F401

    db_path = tmp_path / "fresh.db"
    engine = create_engine(f"sqlite:///{db_path}")
    SQLModel.metadata.create_all(engine)
    before = _index_names(db_path, "payrun")

    ensure_schema_compat(engine)

    assert ACTIVE_PAYRUN_INDEX in before
    assert _index_names(db_path, "payrun") == before


def test_ensure_schema_compat_skips_missing_tables(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    ensure_schema_compat(engine)
    with engine.connect() as conn:
        tables = conn.execute(text("SELECT name FROM sqlite_master WHERE type = 'table'")).fetchall()
    assert tables == []
