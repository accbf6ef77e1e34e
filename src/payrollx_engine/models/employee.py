"""Employee, salary structure, attendance and holiday models.

These tables belong to the CRUD collaborators. The payroll engine reads them
and never writes to them, except for salary structure revisions.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payrollx_engine.calculators.types import TaxFilingStatus
from payrollx_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payrollx_engine.models.payroll import Payslip


class Employee(Base, TimestampMixin):
    """Employee record."""

    __tablename__ = "employees"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    designation: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tax_filing_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TaxFilingStatus.NON_FILER.value
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    __table_args__ = (
        CheckConstraint(
            "tax_filing_status IN ('filer', 'non_filer')",
            name="employees_tax_filing_status_check",
        ),
        CheckConstraint(
            "status IN ('active', 'inactive', 'terminated', 'on_leave')",
            name="employees_status_check",
        ),
    )

    # Relationships
    salary_structures: Mapped[list[SalaryStructure]] = relationship(back_populates="employee")
    payslips: Mapped[list[Payslip]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def is_filer(self) -> bool:
        return self.tax_filing_status == TaxFilingStatus.FILER.value


class SalaryStructure(Base, TimestampMixin):
    """Effective-dated salary structure; at most one is current per employee."""

    __tablename__ = "salary_structures"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )

    basic_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    housing_allowance: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    transport_allowance: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    medical_allowance: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    utility_allowance: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    other_allowances: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    loan_deduction: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    other_deductions: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )

    effective_from: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index(
            "salary_structures_one_current",
            "employee_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
        CheckConstraint(
            "effective_to IS NULL OR effective_to >= effective_from",
            name="salary_structures_dates_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="salary_structures")

    @property
    def gross_salary(self) -> Decimal:
        """Basic pay plus all allowances."""
        return (
            self.basic_salary
            + self.housing_allowance
            + self.transport_allowance
            + self.medical_allowance
            + self.utility_allowance
            + self.other_allowances
        )


class Attendance(Base, TimestampMixin):
    """One day of attendance for one employee."""

    __tablename__ = "attendance"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    attendance_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="present")
    working_hours: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    overtime_hours: Mapped[Decimal | None] = mapped_column(
        Numeric(4, 2), nullable=True, default=Decimal("0")
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="attendance_employee_date_unique"),
        CheckConstraint(
            "status IN ('present', 'absent', 'half_day', 'late', 'on_leave', 'holiday', 'weekend')",
            name="attendance_status_check",
        ),
        Index("attendance_employee_date_idx", "employee_id", "date"),
    )


class PublicHoliday(Base, TimestampMixin):
    """Public holiday date."""

    __tablename__ = "public_holidays"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    holiday_date: Mapped[date] = mapped_column("date", Date, nullable=False, unique=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
