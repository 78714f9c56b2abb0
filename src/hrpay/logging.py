"""Process-wide logger for hrpay.

Every record carries a short run id so log lines from one process can be
correlated across the API, the CLI and background jobs.
"""
from __future__ import annotations
import logging
import sys
import uuid
from hrpay.config import settings

_RUN_ID = uuid.uuid4().hex[:8]

_FORMAT = "%(asctime)s %(levelname)-7s [%(run_id)s] %(name)s: %(message)s"


class _RunIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _RUN_ID
        return True


def get_run_id() -> str:
    return _RUN_ID


def setup_logging(level: str | None = None) -> logging.Logger:
    """Attach a stderr handler to the ``hrpay`` logger (idempotent)."""
    root = logging.getLogger("hrpay")
    root.setLevel((level or settings.LOG_LEVEL).upper())
    if not any(getattr(h, "_hrpay", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler.addFilter(_RunIdFilter())
        handler._hrpay = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root


logger = setup_logging()
