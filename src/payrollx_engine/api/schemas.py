"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from payrollx_engine.services.state_machine import PayrollRunStateMachine

# ============================================================================
# Payroll Run schemas
# ============================================================================


class PayrollRunCreate(BaseModel):
    """Schema for creating (or fetching) the draft run of a month."""

    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2020, le=2100)


class PayrollRunResponse(BaseModel):
    """Schema for payroll run response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    month: int
    year: int
    period_start: date
    period_end: date
    status: str
    total_employees: int
    total_gross_salary: Decimal
    total_deductions: Decimal
    total_tax: Decimal
    total_net_salary: Decimal
    total_employer_contributions: Decimal
    created_by: UUID | None = None
    processed_by: UUID | None = None
    processed_at: datetime | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def next_statuses(self) -> list[str]:
        """Statuses this run may move to next."""
        return [s.value for s in PayrollRunStateMachine.get_next_statuses(self.status)]

    @computed_field
    @property
    def results_locked(self) -> bool:
        """True once payslips can no longer be regenerated or changed."""
        return PayrollRunStateMachine.are_results_immutable(self.status)


class PayrollRunListResponse(BaseModel):
    """Schema for listing payroll runs."""

    items: list[PayrollRunResponse]
    total: int
    page: int
    limit: int


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipResponse(BaseModel):
    """Schema for payslip response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payroll_run_id: UUID
    employee_id: UUID
    employee_name: str | None = None
    month: int
    year: int
    working_days: int
    present_days: int
    absent_days: int
    leave_days: Decimal
    overtime_hours: Decimal
    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    medical_allowance: Decimal
    utility_allowance: Decimal
    other_allowances: Decimal
    overtime_pay: Decimal
    gross_salary: Decimal
    income_tax: Decimal
    eobi_contribution: Decimal
    sessi_contribution: Decimal
    employer_eobi_contribution: Decimal
    employer_sessi_contribution: Decimal
    loan_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    taxable_income: Decimal
    tax_slab: str | None = None
    is_filer: bool
    status: str
    created_at: datetime


class PayslipListResponse(BaseModel):
    """Schema for listing payslips."""

    items: list[PayslipResponse]
    total: int
    page: int
    limit: int


# ============================================================================
# Tax schemas
# ============================================================================


class TaxCalculationRequest(BaseModel):
    """Schema for a tax preview request."""

    gross_salary: Decimal = Field(ge=0)
    is_filer: bool = False
    loan_deduction: Decimal = Field(default=Decimal("0"), ge=0)
    other_deductions: Decimal = Field(default=Decimal("0"), ge=0)


class TaxCalculationResponse(BaseModel):
    """Deduction breakdown for one monthly gross."""

    gross_salary: Decimal
    income_tax: Decimal
    tax_slab: str
    effective_tax_rate: Decimal
    eobi_employee: Decimal
    eobi_employer: Decimal
    sessi_employee: Decimal
    sessi_employer: Decimal
    loan_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    employer_contributions: Decimal
    net_salary: Decimal
    is_filer: bool


class TaxSlabResponse(BaseModel):
    """One row of the tax bracket table."""

    min: Decimal
    max: Decimal | None = None
    rate: Decimal
    fixed: Decimal
    label: str


class TaxSlabListResponse(BaseModel):
    """Schema for the bracket table of one schedule."""

    type: str
    tax_year: str
    slabs: list[TaxSlabResponse]


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
