"""Income tax and statutory deduction calculation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from payrollx_engine.calculators.policy import PayrollPolicy
from payrollx_engine.calculators.types import (
    Contribution,
    DeductionBreakdown,
    MonthlyTax,
    TaxAssessment,
    TaxBracket,
)
from payrollx_engine.errors import PayrollValidationError

ZERO = Decimal("0")
MONTHS_PER_YEAR = Decimal("12")


def round_currency(amount: Decimal) -> Decimal:
    """Round to whole currency units, half up."""
    return amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


class TaxCalculator:
    """Calculates income tax and statutory contributions from a policy.

    Income tax is always assessed on annualised income:
    monthly tax = round(round(annual_tax(gross * 12)) / 12).
    Rounding happens only on the annual figure and on the monthly figure.
    """

    def __init__(self, policy: PayrollPolicy):
        self.policy = policy

    def annual_tax(self, annual_income: Decimal, is_filer: bool) -> TaxAssessment:
        """Calculate annual income tax using the filer or non-filer schedule."""
        annual_income = Decimal(annual_income)
        bracket = self._find_bracket(annual_income, is_filer)

        tax = ZERO
        if bracket.rate > 0:
            taxable_amount = annual_income - bracket.min_amount + 1
            tax = bracket.fixed_amount + taxable_amount * bracket.rate

        annual_tax = round_currency(tax)
        if annual_income > 0:
            effective_rate = (tax / annual_income * 100).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )
        else:
            effective_rate = Decimal("0.00")

        return TaxAssessment(
            annual_income=annual_income,
            annual_tax=annual_tax,
            effective_rate=effective_rate,
            bracket_label=bracket.label,
            is_filer=is_filer,
        )

    def monthly_tax(self, monthly_gross: Decimal, is_filer: bool) -> MonthlyTax:
        """Calculate monthly withholding from monthly gross salary."""
        monthly_gross = Decimal(monthly_gross)
        assessment = self.annual_tax(monthly_gross * MONTHS_PER_YEAR, is_filer)

        return MonthlyTax(
            monthly_gross=monthly_gross,
            monthly_tax=round_currency(assessment.annual_tax / MONTHS_PER_YEAR),
            annual_projection=assessment.annual_tax,
            effective_rate=assessment.effective_rate,
            bracket_label=assessment.bracket_label,
            is_filer=is_filer,
        )

    def eobi(self, gross_salary: Decimal) -> Contribution:
        """Uncapped contribution; the employer pays the residual of the total rate."""
        total = round_currency(gross_salary * self.policy.eobi_rate)
        employee = round_currency(gross_salary * self.policy.eobi_employee_rate)
        return Contribution(employer=total - employee, employee=employee)

    def sessi(self, gross_salary: Decimal) -> Contribution:
        """Capped contribution, entirely employer-borne."""
        applicable = min(gross_salary, self.policy.sessi_wage_cap)
        return Contribution(
            employer=round_currency(applicable * self.policy.sessi_rate),
            employee=ZERO,
        )

    def all_deductions(
        self,
        gross_salary: Decimal,
        is_filer: bool,
        loan_deduction: Decimal = ZERO,
        other_deductions: Decimal = ZERO,
    ) -> DeductionBreakdown:
        """Compose income tax, statutory shares and adjustments into net pay."""
        gross_salary = Decimal(gross_salary)
        loan_deduction = Decimal(loan_deduction)
        other_deductions = Decimal(other_deductions)
        for name, value in (
            ("gross_salary", gross_salary),
            ("loan_deduction", loan_deduction),
            ("other_deductions", other_deductions),
        ):
            if value < 0:
                raise PayrollValidationError(f"{name} must not be negative", field=name)

        # Stored figures are whole units; round each input once
        gross_salary = round_currency(gross_salary)
        loan_deduction = round_currency(loan_deduction)
        other_deductions = round_currency(other_deductions)

        tax = self.monthly_tax(gross_salary, is_filer)
        eobi = self.eobi(gross_salary)
        sessi = self.sessi(gross_salary)

        total_deductions = (
            tax.monthly_tax + eobi.employee + sessi.employee + loan_deduction + other_deductions
        )

        return DeductionBreakdown(
            gross_salary=gross_salary,
            income_tax=tax.monthly_tax,
            tax_slab=tax.bracket_label,
            effective_tax_rate=tax.effective_rate,
            eobi=eobi,
            sessi=sessi,
            loan_deduction=loan_deduction,
            other_deductions=other_deductions,
            total_deductions=total_deductions,
            net_salary=gross_salary - total_deductions,
            is_filer=is_filer,
        )

    def bracket_table(self, is_filer: bool) -> list[TaxBracket]:
        """Ordered bracket list for the requested schedule."""
        return list(self.policy.brackets_for(is_filer))

    def _find_bracket(self, income: Decimal, is_filer: bool) -> TaxBracket:
        brackets = self.policy.brackets_for(is_filer)
        for bracket in brackets:
            if bracket.covers(income):
                return bracket
        # Unreachable for a validated policy; the last bracket is unbounded
        return brackets[-1]
