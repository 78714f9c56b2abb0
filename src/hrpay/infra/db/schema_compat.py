"""Runtime DB compatibility helpers for existing SQLite databases.

``SQLModel.metadata.create_all()`` creates missing tables but never adds an
index to a table that already exists. Databases created before the
one-live-payrun-per-month index was declared get it here.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

ACTIVE_PAYRUN_INDEX = "ux_payrun_tenant_month_active"


def ensure_schema_compat(engine: Engine) -> None:
    """Apply additive compatibility upgrades for existing SQLite databases.

    Raises ``IntegrityError`` if the stored payruns already break the
    one-live-payrun rule; those rows need a manual cancel first.
    """
    if engine.dialect.name != "sqlite":
        return

    with engine.begin() as conn:
        _ensure_active_payrun_index(conn)


def _ensure_active_payrun_index(conn: Connection) -> None:
    if not _table_exists(conn, "payrun") or _index_exists(conn, ACTIVE_PAYRUN_INDEX):
        return

    conn.execute(
        text(
            f"CREATE UNIQUE INDEX {ACTIVE_PAYRUN_INDEX} "
            "ON payrun (tenant_id, period_month) WHERE status != 'CANCELLED'"
        )
    )
    logger.info("Applied compatibility upgrade: added %s", ACTIVE_PAYRUN_INDEX)


def _table_exists(conn: Connection, table_name: str) -> bool:
    return _sqlite_object_exists(conn, "table", table_name)


def _index_exists(conn: Connection, index_name: str) -> bool:
    return _sqlite_object_exists(conn, "index", index_name)


def _sqlite_object_exists(conn: Connection, kind: str, name: str) -> bool:
    return (
        conn.execute(
            text(
                "SELECT 1 FROM sqlite_master "
                "WHERE type = :kind AND name = :name LIMIT 1"
            ),
            {"kind": kind, "name": name},
        ).first()
        is not None
    )
