"""Payslip calculation engine - per-worker computation for a payroll run."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from payrollx_engine.calculators.policy import PayrollPolicy
from payrollx_engine.calculators.tax_calculator import TaxCalculator, round_currency
from payrollx_engine.calculators.types import (
    AttendanceSummary,
    DeductionBreakdown,
    SalaryComponents,
)

ZERO = Decimal("0")


@dataclass(frozen=True)
class PayslipFigures:
    """Frozen result of calculating one worker's pay for a period."""

    employee_id: UUID
    working_days: int
    attendance: AttendanceSummary
    salary: SalaryComponents
    overtime_pay: Decimal
    gross_salary: Decimal
    deductions: DeductionBreakdown

    @property
    def net_salary(self) -> Decimal:
        return self.deductions.net_salary

    @property
    def taxable_income(self) -> Decimal:
        return self.gross_salary * 12


@dataclass
class RunTotals:
    """Run-level aggregates accumulated across payslips."""

    employee_count: int = 0
    gross_salary: Decimal = ZERO
    deductions: Decimal = ZERO
    tax: Decimal = ZERO
    net_salary: Decimal = ZERO
    employer_contributions: Decimal = ZERO

    def add(self, figures: PayslipFigures) -> None:
        self.employee_count += 1
        self.gross_salary += figures.gross_salary
        self.deductions += figures.deductions.total_deductions
        self.tax += figures.deductions.income_tax
        self.net_salary += figures.net_salary
        self.employer_contributions += figures.deductions.employer_contributions


class PayrollEngine:
    """Calculates one worker's payslip figures.

    Calculation pipeline (stable order per worker):
    1) Gross from basic pay and allowances, rounded to whole units
    2) Overtime pay from the hourly rate implied by working days
    3) Final gross = gross + overtime pay
    4) Income tax, statutory shares and adjustments on the final gross
    """

    def __init__(self, policy: PayrollPolicy, tax_calculator: TaxCalculator | None = None):
        self.policy = policy
        self.tax_calculator = tax_calculator or TaxCalculator(policy)

    def overtime_pay(
        self, gross_salary: Decimal, working_days: int, overtime_hours: Decimal
    ) -> Decimal:
        """overtime_hours * (gross / (working_days * hours_per_day)) * multiplier."""
        if working_days <= 0 or overtime_hours <= 0:
            return ZERO
        hourly_rate = gross_salary / (working_days * self.policy.standard_hours_per_day)
        return round_currency(overtime_hours * hourly_rate * self.policy.overtime_multiplier)

    def calculate(
        self,
        salary: SalaryComponents,
        attendance: AttendanceSummary,
        working_days: int,
    ) -> PayslipFigures:
        base_gross = round_currency(salary.gross_salary)
        overtime_pay = self.overtime_pay(base_gross, working_days, attendance.overtime_hours)
        gross = base_gross + overtime_pay

        deductions = self.tax_calculator.all_deductions(
            gross,
            salary.is_filer,
            loan_deduction=salary.loan_deduction,
            other_deductions=salary.other_deductions,
        )

        return PayslipFigures(
            employee_id=salary.employee_id,
            working_days=working_days,
            attendance=attendance,
            salary=salary,
            overtime_pay=overtime_pay,
            gross_salary=gross,
            deductions=deductions,
        )
