"""Salary structure revisions.

A revision never edits a structure in place: the current row is closed and a
new current row is inserted, so past payslips stay explainable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from payrollx_engine.errors import NotFoundError, PayrollValidationError, PersistenceError
from payrollx_engine.models import Employee, SalaryStructure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalaryStructureUpdate:
    """Typed update command. None means "keep the current value"."""

    basic_salary: Decimal | None = None
    housing_allowance: Decimal | None = None
    transport_allowance: Decimal | None = None
    medical_allowance: Decimal | None = None
    utility_allowance: Decimal | None = None
    other_allowances: Decimal | None = None
    loan_deduction: Decimal | None = None
    other_deductions: Decimal | None = None

    # External (API) field name -> model attribute
    FIELD_MAP = {
        "basicSalary": "basic_salary",
        "housingAllowance": "housing_allowance",
        "transportAllowance": "transport_allowance",
        "medicalAllowance": "medical_allowance",
        "utilityAllowance": "utility_allowance",
        "otherAllowances": "other_allowances",
        "loanDeduction": "loan_deduction",
        "otherDeductions": "other_deductions",
    }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SalaryStructureUpdate:
        """Build a command from camelCase request keys.

        Unknown keys are rejected rather than ignored.
        """
        unknown = sorted(set(payload) - set(cls.FIELD_MAP))
        if unknown:
            raise PayrollValidationError(
                f"Unknown salary field(s): {', '.join(unknown)}", field=unknown[0]
            )

        values = {}
        for external, attribute in cls.FIELD_MAP.items():
            if external in payload and payload[external] is not None:
                values[attribute] = _parse_amount(payload[external], external)
        return cls(**values)

    def changes(self) -> dict[str, Decimal]:
        """Attributes this command sets, keyed by model attribute."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


def _parse_amount(value: Any, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise PayrollValidationError(f"{field} must be a number", field=field) from None
    if not amount.is_finite() or amount < 0:
        raise PayrollValidationError(f"{field} must be a non-negative amount", field=field)
    return amount


class SalaryStructureService:
    """Reads and revises employee salary structures."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_current(self, employee_id: UUID) -> SalaryStructure | None:
        result = await self.session.execute(
            select(SalaryStructure).where(
                SalaryStructure.employee_id == employee_id,
                SalaryStructure.is_current.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def history(self, employee_id: UUID) -> list[SalaryStructure]:
        result = await self.session.execute(
            select(SalaryStructure)
            .where(SalaryStructure.employee_id == employee_id)
            .order_by(SalaryStructure.effective_from.desc())
        )
        return list(result.scalars().all())

    async def revise(
        self,
        employee_id: UUID,
        update: SalaryStructureUpdate,
        effective_from: date | None = None,
    ) -> SalaryStructure:
        """Close the current structure and insert a new current one.

        Fields the command leaves unset are copied from the current structure.
        The closed structure ends the day before the new one starts.
        """
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)

        effective_from = effective_from or date.today()
        changes = update.changes()
        current = await self.get_current(employee_id)

        if current is None:
            if "basic_salary" not in changes:
                raise PayrollValidationError(
                    "basicSalary is required for a first salary structure",
                    field="basicSalary",
                )
            values: dict[str, Decimal] = {}
        else:
            if effective_from <= current.effective_from:
                raise PayrollValidationError(
                    f"Revision must take effect after {current.effective_from.isoformat()}",
                    field="effectiveFrom",
                )
            values = {
                attribute: getattr(current, attribute)
                for attribute in SalaryStructureUpdate.FIELD_MAP.values()
            }
        values.update(changes)

        try:
            if current is not None:
                current.is_current = False
                current.effective_to = effective_from - timedelta(days=1)
                # Release the one-current index before the new row goes in
                await self.session.flush()

            revised = SalaryStructure(
                employee_id=employee_id,
                effective_from=effective_from,
                is_current=True,
                **values,
            )
            self.session.add(revised)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(
                f"Revising salary structure for employee {employee_id} failed"
            ) from exc

        logger.info(
            "Revised salary structure for employee %s effective %s, gross %s",
            employee_id,
            effective_from.isoformat(),
            revised.gross_salary,
        )
        return revised
