"""ORM table models. Importing this package registers every mapper."""
from hrpay.models.directory import AttendanceDay, AttendanceStatus, Employee, SalaryConfig
from hrpay.models.payroll import Payrun, PayrunEvent, Payslip

__all__ = [
    "AttendanceDay",
    "AttendanceStatus",
    "Employee",
    "Payrun",
    "PayrunEvent",
    "Payslip",
    "SalaryConfig",
]
