"""Seed script for public holidays and sample employees.

Run with:
    python scripts/seed_data.py

This creates the gazetted holidays for 2024-2025 and a handful of employees
with current salary structures so a payroll run can be processed end to end.
"""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payrollx_engine.database import create_schema, dispose_db, get_session
from payrollx_engine.models import Employee, PublicHoliday, SalaryStructure

FIXED_HOLIDAYS = [
    ((2, 5), "Kashmir Day", "Kashmir Solidarity Day"),
    ((3, 23), "Pakistan Day", "Pakistan Resolution Day"),
    ((5, 1), "Labour Day", "International Workers Day"),
    ((8, 14), "Independence Day", "Pakistan Independence Day"),
    ((11, 9), "Iqbal Day", "Allama Iqbal Birthday"),
    ((12, 25), "Quaid-e-Azam Day", "Birthday of Quaid-e-Azam"),
]

# (code, first, last, designation, gross, filer)
SAMPLE_EMPLOYEES = [
    ("EMP0001", "Fatima", "Ali", "Software Engineer", 150000, True),
    ("EMP0002", "Usman", "Malik", "Engineering Manager", 220000, False),
    ("EMP0003", "Ayesha", "Khan", "Accountant", 95000, True),
    ("EMP0004", "Bilal", "Raza", "Support Specialist", 60000, False),
]


async def seed_holidays(session: AsyncSession, years: list[int]) -> None:
    """Create the fixed-date public holidays for each year."""
    for year in years:
        for (month, day), name, description in FIXED_HOLIDAYS:
            holiday_date = date(year, month, day)
            result = await session.execute(
                select(PublicHoliday).where(PublicHoliday.holiday_date == holiday_date)
            )
            if result.scalar_one_or_none():
                continue

            session.add(
                PublicHoliday(
                    name=name,
                    holiday_date=holiday_date,
                    year=year,
                    description=description,
                )
            )
        print(f"Seeded holidays for {year}")

    await session.flush()


async def seed_employees(session: AsyncSession) -> None:
    """Create sample employees with a 60/20/10/10 salary split."""
    for code, first, last, designation, gross, filer in SAMPLE_EMPLOYEES:
        result = await session.execute(select(Employee).where(Employee.employee_code == code))
        if result.scalar_one_or_none():
            print(f"{code} already exists, skipping...")
            continue

        gross = Decimal(gross)
        employee = Employee(
            employee_code=code,
            first_name=first,
            last_name=last,
            designation=designation,
            tax_filing_status="filer" if filer else "non_filer",
        )
        session.add(employee)
        await session.flush()

        session.add(
            SalaryStructure(
                employee_id=employee.id,
                basic_salary=gross * Decimal("0.6"),
                housing_allowance=gross * Decimal("0.2"),
                transport_allowance=gross * Decimal("0.1"),
                medical_allowance=gross * Decimal("0.1"),
                effective_from=date(2024, 1, 1),
            )
        )
        print(f"Created {code} {first} {last}")

    await session.flush()


async def main():
    """Run seed script."""
    print("Seeding payroll data...")

    await create_schema()
    async with get_session() as session:
        await seed_holidays(session, [2024, 2025])
        await seed_employees(session)
        await session.commit()
    await dispose_db()

    print("\nDone! Payroll data seeded successfully.")


if __name__ == "__main__":
    asyncio.run(main())
