"""Type definitions for calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID


class AttendanceStatus(str, Enum):
    """Daily attendance status values."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half_day"
    LATE = "late"
    ON_LEAVE = "on_leave"
    HOLIDAY = "holiday"
    WEEKEND = "weekend"


class TaxFilingStatus(str, Enum):
    """Tax registration status of a worker."""

    FILER = "filer"
    NON_FILER = "non_filer"


@dataclass(frozen=True)
class TaxBracket:
    """Tax bracket for progressive taxation."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.025 for 2.5%
    fixed_amount: Decimal = Decimal("0")  # Tax owed on all lower brackets

    def covers(self, income: Decimal) -> bool:
        return self.max_amount is None or income <= self.max_amount

    @property
    def label(self) -> str:
        upper = "Above" if self.max_amount is None else f"{self.max_amount:,.0f}"
        return f"{self.min_amount:,.0f} - {upper}"


@dataclass(frozen=True)
class TaxAssessment:
    """Annual income tax for one income figure."""

    annual_income: Decimal
    annual_tax: Decimal  # whole currency units
    effective_rate: Decimal  # percent, two decimals
    bracket_label: str
    is_filer: bool


@dataclass(frozen=True)
class MonthlyTax:
    """Monthly withholding derived from an annualised assessment."""

    monthly_gross: Decimal
    monthly_tax: Decimal
    annual_projection: Decimal
    effective_rate: Decimal
    bracket_label: str
    is_filer: bool


@dataclass(frozen=True)
class Contribution:
    """Statutory contribution split between employer and employee."""

    employer: Decimal
    employee: Decimal

    @property
    def total(self) -> Decimal:
        return self.employer + self.employee


@dataclass(frozen=True)
class DeductionBreakdown:
    """Every deduction for one month's gross salary."""

    gross_salary: Decimal
    income_tax: Decimal
    tax_slab: str
    effective_tax_rate: Decimal
    eobi: Contribution
    sessi: Contribution
    loan_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    is_filer: bool

    @property
    def employer_contributions(self) -> Decimal:
        return self.eobi.employer + self.sessi.employer


@dataclass(frozen=True)
class AttendanceRecord:
    """One day of attendance as stored by the attendance collaborator."""

    status: str
    overtime_hours: Decimal | None = None


@dataclass(frozen=True)
class AttendanceSummary:
    """Attendance counts for one worker over one period."""

    present_days: int = 0
    absent_days: int = 0
    leave_days: int = 0
    overtime_hours: Decimal = Decimal("0")


@dataclass(frozen=True)
class SalaryComponents:
    """Salary structure snapshot read for one worker."""

    employee_id: UUID
    is_filer: bool
    basic_salary: Decimal
    housing_allowance: Decimal = Decimal("0")
    transport_allowance: Decimal = Decimal("0")
    medical_allowance: Decimal = Decimal("0")
    utility_allowance: Decimal = Decimal("0")
    other_allowances: Decimal = Decimal("0")
    loan_deduction: Decimal = Decimal("0")
    other_deductions: Decimal = Decimal("0")

    @property
    def gross_salary(self) -> Decimal:
        return (
            self.basic_salary
            + self.housing_allowance
            + self.transport_allowance
            + self.medical_allowance
            + self.utility_allowance
            + self.other_allowances
        )
