"""Engine singleton and schema bootstrap."""
from __future__ import annotations
from pathlib import Path
from sqlalchemy.engine import make_url
from sqlmodel import SQLModel, create_engine
from hrpay.config import settings


def _make_engine(url: str):
    connect_args = {}
    if make_url(url).get_backend_name() == "sqlite":
        # Sessions are opened per operation on whichever thread serves it.
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, echo=False, connect_args=connect_args)


engine = _make_engine(settings.DATABASE_URL)


def init_db() -> None:
    """Create all tables for the configured database."""
    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    import hrpay.models  # noqa: F401  registers table mappers
    from hrpay.infra.db.schema_compat import ensure_schema_compat

    SQLModel.metadata.create_all(engine)
    ensure_schema_compat(engine)
