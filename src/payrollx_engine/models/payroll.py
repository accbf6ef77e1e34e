"""Payroll run and payslip models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payrollx_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payrollx_engine.models.employee import Employee

ZERO = Decimal("0")


class PayrollRun(Base, TimestampMixin):
    """One payroll batch per (month, year).

    Totals are written only by the run processor.
    """

    __tablename__ = "payroll_runs"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    # Summary totals
    total_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_gross_salary: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, default=ZERO
    )
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=ZERO)
    total_tax: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=ZERO)
    total_net_salary: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, default=ZERO)
    total_employer_contributions: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, default=ZERO
    )

    # Processing info
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    processed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("month", "year", name="payroll_runs_period_unique"),
        CheckConstraint("month >= 1 AND month <= 12", name="payroll_runs_month_check"),
        CheckConstraint(
            "status IN ('draft', 'processing', 'completed', 'approved', 'cancelled')",
            name="payroll_runs_status_check",
        ),
        CheckConstraint("period_end >= period_start", name="payroll_runs_dates_check"),
        Index("payroll_runs_status_idx", "status"),
    )

    # Relationships
    payslips: Mapped[list[Payslip]] = relationship(
        back_populates="payroll_run",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Payslip(Base, TimestampMixin):
    """Frozen per-employee result of one payroll run."""

    __tablename__ = "payslips"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payroll_run_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_runs.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Attendance summary
    working_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    present_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    absent_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    leave_days: Mapped[Decimal] = mapped_column(Numeric(4, 1), nullable=False, default=ZERO)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=ZERO)

    # Earnings
    basic_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    housing_allowance: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    transport_allowance: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=ZERO
    )
    medical_allowance: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    utility_allowance: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    other_allowances: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    gross_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    # Deductions
    income_tax: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    eobi_contribution: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    sessi_contribution: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=ZERO
    )
    loan_deduction: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    other_deductions: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    # Employer-borne contributions (not deducted from net)
    employer_eobi_contribution: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=ZERO
    )
    employer_sessi_contribution: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=ZERO
    )

    # Tax details
    taxable_income: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=ZERO)
    tax_slab: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_filer: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="generated")

    __table_args__ = (
        UniqueConstraint("payroll_run_id", "employee_id", name="payslips_run_employee_unique"),
        CheckConstraint(
            "status IN ('generated', 'approved')",
            name="payslips_status_check",
        ),
        Index("payslips_employee_idx", "employee_id"),
        Index("payslips_period_idx", "month", "year"),
    )

    # Relationships
    payroll_run: Mapped[PayrollRun] = relationship(back_populates="payslips")
    employee: Mapped[Employee] = relationship(back_populates="payslips")
