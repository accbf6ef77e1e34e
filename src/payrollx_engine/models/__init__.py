"""ORM models."""

from payrollx_engine.models.base import Base, TimestampMixin
from payrollx_engine.models.employee import Attendance, Employee, PublicHoliday, SalaryStructure
from payrollx_engine.models.payroll import PayrollRun, Payslip

__all__ = [
    "Base",
    "TimestampMixin",
    "Attendance",
    "Employee",
    "PublicHoliday",
    "SalaryStructure",
    "PayrollRun",
    "Payslip",
]
