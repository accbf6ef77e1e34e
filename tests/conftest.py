"""Pytest fixtures for payroll engine tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payrollx_engine.calculators.policy import PayrollPolicy, default_policy
from payrollx_engine.models import (
    Attendance,
    Base,
    Employee,
    PublicHoliday,
    SalaryStructure,
)

# In-memory SQLite shared across the engine's single connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def policy() -> PayrollPolicy:
    return default_policy()


@pytest.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


async def add_employee(
    session: AsyncSession,
    code: str,
    first_name: str,
    last_name: str,
    gross: Decimal,
    is_filer: bool = True,
    status: str = "active",
    loan_deduction: Decimal = Decimal("0"),
) -> Employee:
    """Create an employee whose current structure sums to the given gross.

    Gross is split 60/20/10/10 across basic, housing, transport and medical.
    """
    employee = Employee(
        employee_code=code,
        first_name=first_name,
        last_name=last_name,
        email=f"{first_name.lower()}.{last_name.lower()}@payrollx.com",
        tax_filing_status="filer" if is_filer else "non_filer",
        status=status,
    )
    session.add(employee)
    await session.flush()

    basic = gross * Decimal("0.6")
    housing = gross * Decimal("0.2")
    transport = gross * Decimal("0.1")
    session.add(
        SalaryStructure(
            employee_id=employee.id,
            basic_salary=basic,
            housing_allowance=housing,
            transport_allowance=transport,
            medical_allowance=gross - basic - housing - transport,
            loan_deduction=loan_deduction,
            effective_from=date(2025, 1, 1),
            is_current=True,
        )
    )
    await session.flush()
    return employee


@pytest.fixture
async def september_holiday(session: AsyncSession) -> PublicHoliday:
    """A Wednesday holiday in September 2025."""
    holiday = PublicHoliday(
        name="Company Foundation Day",
        holiday_date=date(2025, 9, 10),
        year=2025,
    )
    session.add(holiday)
    await session.commit()
    return holiday


@pytest.fixture
async def filer_employee(session: AsyncSession, september_holiday: PublicHoliday) -> Employee:
    """Filer earning 150,000 a month with 10 overtime hours in September 2025."""
    employee = await add_employee(session, "EMP0001", "Fatima", "Ali", Decimal("150000"))

    session.add_all(
        [
            Attendance(
                employee_id=employee.id,
                attendance_date=date(2025, 9, 1),
                status="present",
                overtime_hours=Decimal("6"),
            ),
            Attendance(
                employee_id=employee.id,
                attendance_date=date(2025, 9, 2),
                status="late",
                overtime_hours=Decimal("4"),
            ),
            Attendance(
                employee_id=employee.id,
                attendance_date=date(2025, 9, 3),
                status="absent",
                overtime_hours=None,
            ),
            Attendance(
                employee_id=employee.id,
                attendance_date=date(2025, 9, 4),
                status="on_leave",
            ),
            Attendance(
                employee_id=employee.id,
                attendance_date=date(2025, 9, 5),
                status="half_day",
            ),
            # Outside the period
            Attendance(
                employee_id=employee.id,
                attendance_date=date(2025, 10, 1),
                status="present",
                overtime_hours=Decimal("8"),
            ),
        ]
    )
    await session.commit()
    return employee


@pytest.fixture
async def workforce(session: AsyncSession, filer_employee: Employee) -> list[Employee]:
    """Filer above plus a non-filer, an inactive worker and a worker without salary."""
    non_filer = await add_employee(
        session,
        "EMP0002",
        "Usman",
        "Malik",
        Decimal("220000"),
        is_filer=False,
        loan_deduction=Decimal("5000"),
    )
    await add_employee(
        session, "EMP0003", "Ali", "Raza", Decimal("120000"), status="terminated"
    )
    unpaid = Employee(employee_code="EMP0004", first_name="Sara", last_name="Ahmed")
    session.add(unpaid)
    await session.commit()
    return [filer_employee, non_filer]
