"""SQL-backed readers for the collaborator tables the run processor consumes."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payrollx_engine.calculators.types import AttendanceRecord, SalaryComponents
from payrollx_engine.models import Attendance, Employee, PublicHoliday, SalaryStructure


class SqlHolidayLookup:
    """Holiday dates from the public_holidays table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def holidays_between(self, start: date, end: date) -> set[date]:
        result = await self.session.execute(
            select(PublicHoliday.holiday_date).where(
                PublicHoliday.holiday_date >= start,
                PublicHoliday.holiday_date <= end,
            )
        )
        return set(result.scalars().all())


class SqlAttendanceSource:
    """Daily attendance rows from the attendance table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def records_between(
        self, employee_id: UUID, start: date, end: date
    ) -> list[AttendanceRecord]:
        result = await self.session.execute(
            select(Attendance.status, Attendance.overtime_hours).where(
                Attendance.employee_id == employee_id,
                Attendance.attendance_date >= start,
                Attendance.attendance_date <= end,
            )
        )
        return [
            AttendanceRecord(status=status, overtime_hours=overtime)
            for status, overtime in result.all()
        ]


class SqlWorkforceSource:
    """Active employees joined to their current salary structure."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def eligible_workers(self) -> list[SalaryComponents]:
        result = await self.session.execute(
            select(Employee, SalaryStructure)
            .join(
                SalaryStructure,
                (SalaryStructure.employee_id == Employee.id)
                & SalaryStructure.is_current.is_(True),
            )
            .where(Employee.status == "active")
            .order_by(Employee.employee_code)
        )
        return [_to_components(employee, structure) for employee, structure in result.all()]


def _money(value: Decimal | None) -> Decimal:
    return Decimal(value) if value is not None else Decimal("0")


def _to_components(employee: Employee, structure: SalaryStructure) -> SalaryComponents:
    return SalaryComponents(
        employee_id=employee.id,
        is_filer=employee.is_filer,
        basic_salary=_money(structure.basic_salary),
        housing_allowance=_money(structure.housing_allowance),
        transport_allowance=_money(structure.transport_allowance),
        medical_allowance=_money(structure.medical_allowance),
        utility_allowance=_money(structure.utility_allowance),
        other_allowances=_money(structure.other_allowances),
        loan_deduction=_money(structure.loan_deduction),
        other_deductions=_money(structure.other_deductions),
    )
