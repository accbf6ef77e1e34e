"""Unit tests for TaxCalculator.

Figures are checked against the 2024-25 schedule.
"""

from decimal import Decimal

import pytest

from payrollx_engine.calculators.tax_calculator import TaxCalculator, round_currency
from payrollx_engine.errors import PayrollValidationError


@pytest.fixture
def calc(policy) -> TaxCalculator:
    return TaxCalculator(policy)


class TestRounding:
    """Test whole-unit half-up rounding."""

    def test_half_rounds_up(self):
        assert round_currency(Decimal("187.5")) == Decimal("188")
        assert round_currency(Decimal("110089.5")) == Decimal("110090")

    def test_below_half_rounds_down(self):
        assert round_currency(Decimal("245.0895")) == Decimal("245")


class TestAnnualTax:
    """Test progressive bracket lookup and annual tax."""

    def test_zero_rate_bracket_is_tax_free(self, calc):
        """Income up to 600,000 is untaxed for both schedules."""
        assert calc.annual_tax(Decimal("0"), is_filer=True).annual_tax == 0
        assert calc.annual_tax(Decimal("600000"), is_filer=True).annual_tax == 0
        assert calc.annual_tax(Decimal("600000"), is_filer=False).annual_tax == 0

    def test_first_taxable_unit_rounds_to_zero(self, calc):
        """600,001 falls in the 2.5% bracket but owes only 0.025."""
        result = calc.annual_tax(Decimal("600001"), is_filer=True)

        assert result.annual_tax == 0
        assert result.bracket_label == "600,001 - 1,200,000"

    def test_top_of_second_bracket(self, calc):
        """1,200,000 owes (1,200,000 - 600,001 + 1) * 2.5%."""
        filer = calc.annual_tax(Decimal("1200000"), is_filer=True)
        non_filer = calc.annual_tax(Decimal("1200000"), is_filer=False)

        assert filer.annual_tax == Decimal("15000")
        assert filer.effective_rate == Decimal("1.25")
        assert non_filer.annual_tax == Decimal("16500")

    def test_fixed_amount_applies_in_upper_brackets(self, calc):
        """1,800,000 owes 15,000 fixed plus 12.5% above 1,200,000."""
        result = calc.annual_tax(Decimal("1800000"), is_filer=True)

        assert result.annual_tax == Decimal("90000")
        assert result.bracket_label == "1,200,001 - 2,200,000"

    def test_unbounded_top_bracket(self, calc):
        """5,000,000 owes 612,500 plus 35% above 4,100,000."""
        result = calc.annual_tax(Decimal("5000000"), is_filer=True)

        assert result.annual_tax == Decimal("927500")
        assert result.bracket_label == "4,100,001 - Above"

    def test_fractional_income_between_bounds_uses_higher_bracket(self, calc):
        """Incomes between 1,200,000 and 1,200,001 belong to the third bracket."""
        result = calc.annual_tax(Decimal("1200000.50"), is_filer=True)

        assert result.bracket_label == "1,200,001 - 2,200,000"
        assert result.annual_tax == Decimal("15000")

    def test_effective_rate_zero_for_zero_income(self, calc):
        assert calc.annual_tax(Decimal("0"), is_filer=False).effective_rate == Decimal("0.00")

    @pytest.mark.parametrize(
        "income",
        ["600001", "900000", "1200000", "1500000", "2200001", "3000000", "4100000", "9000000"],
    )
    def test_non_filer_never_pays_less(self, calc, income):
        """Non-filers pay at least as much as filers above the exempt bracket."""
        income = Decimal(income)
        filer = calc.annual_tax(income, is_filer=True).annual_tax
        non_filer = calc.annual_tax(income, is_filer=False).annual_tax

        assert non_filer >= filer


class TestMonthlyTax:
    """Test monthly withholding from monthly gross."""

    def test_monthly_is_annual_over_twelve(self, calc):
        result = calc.monthly_tax(Decimal("100000"), is_filer=True)

        assert result.monthly_tax == Decimal("1250")
        assert result.annual_projection == Decimal("15000")

    def test_rounds_annual_then_monthly(self, calc):
        """163,393 a month: annual 110,089.5 -> 110,090, monthly 9,174.17 -> 9,174."""
        result = calc.monthly_tax(Decimal("163393"), is_filer=True)

        assert result.annual_projection == Decimal("110090")
        assert result.monthly_tax == Decimal("9174")

    def test_exempt_monthly_gross(self, calc):
        assert calc.monthly_tax(Decimal("50000"), is_filer=False).monthly_tax == 0


class TestStatutoryContributions:
    """Test EOBI and SESSI shares."""

    def test_eobi_split(self, calc):
        """0.75% in total; employee pays 0.15%, employer the residual."""
        eobi = calc.eobi(Decimal("100000"))

        assert eobi.employee == Decimal("150")
        assert eobi.employer == Decimal("600")
        assert eobi.total == Decimal("750")

    def test_eobi_is_uncapped(self, calc):
        eobi = calc.eobi(Decimal("1000000"))

        assert eobi.total == Decimal("7500")
        assert eobi.employee == Decimal("1500")

    def test_sessi_capped_and_employer_borne(self, calc):
        sessi = calc.sessi(Decimal("100000"))

        assert sessi.employee == 0
        assert sessi.employer == Decimal("188")

    def test_sessi_below_cap(self, calc):
        assert calc.sessi(Decimal("20000")).employer == Decimal("150")


class TestAllDeductions:
    """Test composition into net pay."""

    def test_net_is_gross_minus_employee_deductions(self, calc):
        breakdown = calc.all_deductions(Decimal("150000"), is_filer=True)

        assert breakdown.income_tax == Decimal("7500")
        assert breakdown.eobi.employee == Decimal("225")
        assert breakdown.sessi.employee == 0
        assert breakdown.total_deductions == Decimal("7725")
        assert breakdown.net_salary == Decimal("142275")
        assert breakdown.tax_slab == "1,200,001 - 2,200,000"

    def test_adjustments_are_deducted(self, calc):
        breakdown = calc.all_deductions(
            Decimal("150000"),
            is_filer=True,
            loan_deduction=Decimal("5000"),
            other_deductions=Decimal("1000"),
        )

        assert breakdown.total_deductions == Decimal("13725")
        assert breakdown.net_salary == Decimal("136275")

    def test_cent_inputs_rounded_to_whole_units(self, calc):
        breakdown = calc.all_deductions(
            Decimal("149999.50"),
            is_filer=True,
            loan_deduction=Decimal("4999.50"),
            other_deductions=Decimal("1000.40"),
        )

        assert breakdown.gross_salary == Decimal("150000")
        assert breakdown.loan_deduction == Decimal("5000")
        assert breakdown.other_deductions == Decimal("1000")
        assert breakdown.total_deductions == Decimal("13725")
        assert breakdown.net_salary == Decimal("136275")

    def test_employer_contributions_not_deducted(self, calc):
        breakdown = calc.all_deductions(Decimal("100000"), is_filer=True)

        assert breakdown.employer_contributions == Decimal("600") + Decimal("188")
        assert breakdown.net_salary == Decimal("100000") - breakdown.total_deductions
        assert breakdown.total_deductions == Decimal("1250") + Decimal("150")

    def test_zero_gross(self, calc):
        breakdown = calc.all_deductions(Decimal("0"), is_filer=False)

        assert breakdown.total_deductions == 0
        assert breakdown.net_salary == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"gross_salary": Decimal("-1")},
            {"gross_salary": Decimal("1000"), "loan_deduction": Decimal("-5")},
            {"gross_salary": Decimal("1000"), "other_deductions": Decimal("-0.01")},
        ],
    )
    def test_negative_inputs_rejected(self, calc, kwargs):
        with pytest.raises(PayrollValidationError):
            calc.all_deductions(is_filer=True, **kwargs)


class TestBracketTable:
    """Test bracket table for display."""

    def test_six_ordered_brackets(self, calc):
        brackets = calc.bracket_table(is_filer=True)

        assert len(brackets) == 6
        assert [b.min_amount for b in brackets] == sorted(b.min_amount for b in brackets)
        assert brackets[0].label == "0 - 600,000"
        assert brackets[-1].max_amount is None

    def test_non_filer_rates(self, calc):
        rates = [b.rate for b in calc.bracket_table(is_filer=False)]

        assert rates == [
            Decimal("0"),
            Decimal("0.0275"),
            Decimal("0.1375"),
            Decimal("0.2475"),
            Decimal("0.3025"),
            Decimal("0.385"),
        ]
