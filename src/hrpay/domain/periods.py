"""Calendar-month helpers. A payroll month is stored as its first day."""
from __future__ import annotations
import calendar
import re
from datetime import date, timedelta

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_month(value: str | date) -> date:
    """Accept ``YYYY-MM`` (or a date) and return the first day of that month."""
    if isinstance(value, date):
        return value.replace(day=1)
    m = _MONTH_RE.match(value.strip())
    if not m:
        raise ValueError(f"month must look like YYYY-MM, got {value!r}")
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {value!r}")
    return date(year, month, 1)


def format_month(period_month: date) -> str:
    return f"{period_month.year:04d}-{period_month.month:02d}"


def month_end(period_month: date) -> date:
    return period_month.replace(day=calendar.monthrange(period_month.year, period_month.month)[1])


def month_days(period_month: date) -> list[date]:
    start = period_month.replace(day=1)
    n = calendar.monthrange(start.year, start.month)[1]
    return [start + timedelta(days=i) for i in range(n)]


def working_days(period_month: date, work_week: list[int] | tuple[int, ...]) -> list[date]:
    """Dates of the month whose weekday (Mon=0) is in *work_week*."""
    week = set(work_week)
    return [d for d in month_days(period_month) if d.weekday() in week]
