"""FastAPI application factory."""
from __future__ import annotations
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel
from hrpay import __version__
from hrpay.logging import get_run_id, logger
from hrpay.domain.exceptions import (
    ConflictError, HRPayError, InvalidTransitionError, NotFoundError, PersistenceError,
)

_STATUS_CODES: dict[type[HRPayError], int] = {
    NotFoundError: 404,
    ConflictError: 409,
    InvalidTransitionError: 409,
    PersistenceError: 503,
}


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from hrpay.infra.db.engine import engine  # triggers pragmas + mapper registration
        from hrpay.infra.db.schema_compat import ensure_schema_compat
        SQLModel.metadata.create_all(engine)
        ensure_schema_compat(engine)
        logger.info("API ready (run %s)", get_run_id())
        yield

    app = FastAPI(
        title="HR Payroll Engine API",
        version=__version__,
        lifespan=lifespan,
    )

    # Import routers inside create_app() to avoid circular imports at module load time
    from hrpay.api.routers.payruns import router as payruns_router
    from hrpay.api.routers.payslips import router as payslips_router
    from hrpay.api.routers.employees import router as employees_router
    from hrpay.api.routers.reports import router as reports_router

    app.include_router(payruns_router)
    app.include_router(payslips_router)
    app.include_router(employees_router)
    app.include_router(reports_router)

    @app.exception_handler(HRPayError)
    def _domain_error(request: Request, exc: HRPayError) -> JSONResponse:
        status_code = _STATUS_CODES.get(type(exc), 400)
        return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})

    @app.get("/health", tags=["ops"])
    def health() -> dict:
        return {"status": "ok"}

    return app
