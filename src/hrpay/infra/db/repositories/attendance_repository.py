"""SQL-backed AttendanceAggregator over the ``attendanceday`` table.

Payable days = present + paid leave + ``HALF_DAY_WEIGHT`` x half days. Absent
and unpaid-leave days count zero. Working days are the dates of the month that
fall on the configured work week. Records are counted as-is, so bad capture
data (e.g. more payable records than working days) reaches the calculator
and is reported there.
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from sqlmodel import Session, select
from hrpay.config import settings
from hrpay.domain.calculator import AttendanceAggregate
from hrpay.domain.periods import month_end, working_days
from hrpay.models.directory import AttendanceDay, AttendanceStatus


class SqlAttendanceAggregator:
    def __init__(
        self,
        session: Session,
        work_week: list[int] | None = None,
        half_day_weight: Decimal | None = None,
    ) -> None:
        self._s = session
        self._work_week = list(settings.WORK_WEEK if work_week is None else work_week)
        self._half = Decimal(str(settings.HALF_DAY_WEIGHT if half_day_weight is None else half_day_weight))

    def _weights(self) -> dict[AttendanceStatus, Decimal]:
        return {
            AttendanceStatus.PRESENT: Decimal("1"),
            AttendanceStatus.PAID_LEAVE: Decimal("1"),
            AttendanceStatus.HALF_DAY: self._half,
            AttendanceStatus.ABSENT: Decimal("0"),
            AttendanceStatus.UNPAID_LEAVE: Decimal("0"),
        }

    def list_days(self, tenant_id: str, employee_id: int, month: date) -> list[AttendanceDay]:
        return list(self._s.exec(
            select(AttendanceDay).where(
                AttendanceDay.tenant_id == tenant_id,
                AttendanceDay.employee_id == employee_id,
                AttendanceDay.day >= month.replace(day=1),
                AttendanceDay.day <= month_end(month),
            )
        ).all())

    def get_attendance_aggregate(self, tenant_id: str, employee_id: int, month: date) -> AttendanceAggregate:
        weights = self._weights()
        payable = sum(
            (weights[AttendanceStatus(d.status)] for d in self.list_days(tenant_id, employee_id, month)),
            Decimal("0"),
        )
        return AttendanceAggregate(
            total_working_days=len(working_days(month, self._work_week)),
            payable_days=payable,
        )

    def record(self, *, tenant_id: str, employee_id: int, day: date, status: AttendanceStatus) -> AttendanceDay:
        row = AttendanceDay(tenant_id=tenant_id, employee_id=employee_id, day=day, status=status)
        self._s.add(row)
        self._s.flush()
        return row
