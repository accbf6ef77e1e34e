"""Payroll calculation engine."""

from payrollx_engine.calculators.attendance import AttendanceAggregator, summarize_attendance
from payrollx_engine.calculators.engine import PayrollEngine, PayslipFigures, RunTotals
from payrollx_engine.calculators.policy import PayrollPolicy, default_policy, load_policy
from payrollx_engine.calculators.tax_calculator import TaxCalculator
from payrollx_engine.calculators.working_calendar import (
    WorkingCalendarResolver,
    count_working_days,
    month_bounds,
)

__all__ = [
    "AttendanceAggregator",
    "summarize_attendance",
    "PayrollEngine",
    "PayslipFigures",
    "RunTotals",
    "PayrollPolicy",
    "default_policy",
    "load_policy",
    "TaxCalculator",
    "WorkingCalendarResolver",
    "count_working_days",
    "month_bounds",
]
