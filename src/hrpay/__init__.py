"""Payroll computation engine: payrun lifecycle and payslip calculation."""

__version__ = "0.3.0"
