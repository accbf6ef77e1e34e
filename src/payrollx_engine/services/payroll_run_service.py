"""Payroll run service - main orchestrator for payroll operations."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from payrollx_engine.calculators.attendance import AttendanceAggregator, AttendanceSource
from payrollx_engine.calculators.engine import PayrollEngine, PayslipFigures, RunTotals
from payrollx_engine.calculators.policy import PayrollPolicy
from payrollx_engine.calculators.working_calendar import (
    HolidayLookup,
    WorkingCalendarResolver,
    month_bounds,
)
from payrollx_engine.errors import (
    InvalidStateError,
    NotFoundError,
    PayrollValidationError,
    PersistenceError,
)
from payrollx_engine.models import PayrollRun, Payslip
from payrollx_engine.models.base import utcnow
from payrollx_engine.services.sources import (
    SqlAttendanceSource,
    SqlHolidayLookup,
    SqlWorkforceSource,
)
from payrollx_engine.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
    PayslipStatus,
)

logger = logging.getLogger(__name__)

MIN_YEAR = 2020
MAX_YEAR = 2100


def validate_period(month: int, year: int) -> None:
    """Reject malformed periods before anything touches the store."""
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise PayrollValidationError("Month must be between 1 and 12", field="month")
    if not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise PayrollValidationError(
            f"Year must be between {MIN_YEAR} and {MAX_YEAR}", field="year"
        )


class PayrollRunService:
    """Service for managing the payroll run lifecycle.

    Operations:
    - create_payroll_run: Get or create the draft run for a month
    - process_payroll_run: Regenerate every payslip and the run totals atomically
    - approve_payroll_run: Freeze a completed run and its payslips
    - cancel_payroll_run: Abandon a draft run
    - reset_stuck_run: Return a run left in processing to draft

    Every mutating operation is one unit of work on the session: it commits on
    success and rolls back everything on failure.
    """

    def __init__(
        self,
        session: AsyncSession,
        policy: PayrollPolicy,
        engine: PayrollEngine | None = None,
        holiday_lookup: HolidayLookup | None = None,
        attendance_source: AttendanceSource | None = None,
        workforce_source: SqlWorkforceSource | None = None,
    ):
        self.session = session
        self.policy = policy
        self.engine = engine or PayrollEngine(policy)
        self.calendar = WorkingCalendarResolver(
            holiday_lookup or SqlHolidayLookup(session),
            policy.rest_weekdays,
        )
        self.attendance = AttendanceAggregator(attendance_source or SqlAttendanceSource(session))
        self.workforce = workforce_source or SqlWorkforceSource(session)

    # === Queries ===

    async def get_payroll_run(self, payroll_run_id: UUID) -> PayrollRun:
        """Load a payroll run, raising NotFoundError if it does not exist."""
        payroll_run = await self.session.get(PayrollRun, payroll_run_id)
        if payroll_run is None:
            raise NotFoundError("Payroll run", payroll_run_id)
        return payroll_run

    async def list_payroll_runs(
        self,
        year: int | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[PayrollRun], int]:
        """List payroll runs, newest period first."""
        query = select(PayrollRun)
        if year is not None:
            query = query.where(PayrollRun.year == year)
        if status:
            query = query.where(PayrollRun.status == status)

        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0

        query = query.order_by(PayrollRun.year.desc(), PayrollRun.month.desc())
        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def list_payslips(
        self,
        payroll_run_id: UUID | None = None,
        employee_id: UUID | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Payslip], int]:
        """List payslips filtered by run and/or employee."""
        query = select(Payslip)
        if payroll_run_id is not None:
            query = query.where(Payslip.payroll_run_id == payroll_run_id)
        if employee_id is not None:
            query = query.where(Payslip.employee_id == employee_id)

        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0

        query = (
            query.options(selectinload(Payslip.employee))
            .order_by(Payslip.year.desc(), Payslip.month.desc(), Payslip.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def get_payslip(self, payslip_id: UUID) -> Payslip:
        result = await self.session.execute(
            select(Payslip)
            .where(Payslip.id == payslip_id)
            .options(selectinload(Payslip.employee))
        )
        payslip = result.scalar_one_or_none()
        if payslip is None:
            raise NotFoundError("Payslip", payslip_id)
        return payslip

    # === Lifecycle ===

    async def create_payroll_run(
        self,
        month: int,
        year: int,
        created_by: UUID | None = None,
    ) -> PayrollRun:
        """Return the draft run for a month, creating it if needed.

        An existing run in any other status is rejected.
        """
        validate_period(month, year)

        existing = await self._find_by_period(month, year)
        if existing is not None:
            return self._require_draft(existing)

        period_start, period_end = month_bounds(month, year)
        payroll_run = PayrollRun(
            month=month,
            year=year,
            period_start=period_start,
            period_end=period_end,
            status=PayrollRunStatus.DRAFT.value,
            created_by=created_by,
        )
        self.session.add(payroll_run)
        try:
            await self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent create for the same period
            await self.session.rollback()
            existing = await self._find_by_period(month, year)
            if existing is None:
                raise PersistenceError(f"Could not create payroll run for {month}/{year}")
            return self._require_draft(existing)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(f"Could not create payroll run for {month}/{year}") from exc

        logger.info("Created payroll run %s for %s/%s", payroll_run.id, month, year)
        return payroll_run

    async def process_payroll_run(
        self,
        payroll_run_id: UUID,
        processed_by: UUID | None = None,
    ) -> PayrollRun:
        """Generate payslips for every eligible worker in one transaction.

        Steps:
        1. Compare-and-swap draft → processing
        2. Resolve working days for the period
        3. Load active workers with a current salary structure
        4. Discard payslips from any earlier processing of this run
        5. Calculate and insert one payslip per worker
        6. Store totals and mark the run completed

        Any failure rolls back every step; the run stays draft.
        """
        payroll_run = await self.get_payroll_run(payroll_run_id)

        try:
            await self._compare_and_set(
                payroll_run, PayrollRunStatus.DRAFT, PayrollRunStatus.PROCESSING
            )

            working_days = await self.calendar.working_days(payroll_run.month, payroll_run.year)
            workers = await self.workforce.eligible_workers()

            await self.session.execute(
                delete(Payslip)
                .where(Payslip.payroll_run_id == payroll_run_id)
                .execution_options(synchronize_session="fetch")
            )

            totals = RunTotals()
            for salary in workers:
                attendance = await self.attendance.summarize(
                    salary.employee_id, payroll_run.period_start, payroll_run.period_end
                )
                figures = self.engine.calculate(salary, attendance, working_days)
                self.session.add(self._build_payslip(payroll_run, figures))
                totals.add(figures)
            await self.session.flush()

            await self._compare_and_set(
                payroll_run,
                PayrollRunStatus.PROCESSING,
                PayrollRunStatus.COMPLETED,
                total_employees=totals.employee_count,
                total_gross_salary=totals.gross_salary,
                total_deductions=totals.deductions,
                total_tax=totals.tax,
                total_net_salary=totals.net_salary,
                total_employer_contributions=totals.employer_contributions,
                processed_by=processed_by,
                processed_at=utcnow(),
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Processing payroll run %s failed", payroll_run_id)
            raise PersistenceError(f"Processing payroll run {payroll_run_id} failed") from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Processed payroll run %s: %d payslips over %d working days",
            payroll_run_id,
            totals.employee_count,
            working_days,
        )
        return await self.get_payroll_run(payroll_run_id)

    async def approve_payroll_run(
        self,
        payroll_run_id: UUID,
        approved_by: UUID | None = None,
    ) -> PayrollRun:
        """Approve a completed run and every payslip in it."""
        payroll_run = await self.get_payroll_run(payroll_run_id)

        try:
            await self._compare_and_set(
                payroll_run,
                PayrollRunStatus.COMPLETED,
                PayrollRunStatus.APPROVED,
                approved_by=approved_by,
                approved_at=utcnow(),
            )
            await self.session.execute(
                update(Payslip)
                .where(Payslip.payroll_run_id == payroll_run_id)
                .values(status=PayslipStatus.APPROVED.value)
                .execution_options(synchronize_session="fetch")
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(f"Approving payroll run {payroll_run_id} failed") from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Approved payroll run %s", payroll_run_id)
        return await self.get_payroll_run(payroll_run_id)

    async def cancel_payroll_run(self, payroll_run_id: UUID) -> PayrollRun:
        """Cancel a draft run."""
        return await self._simple_transition(
            payroll_run_id, PayrollRunStatus.DRAFT, PayrollRunStatus.CANCELLED
        )

    async def reset_stuck_run(self, payroll_run_id: UUID) -> PayrollRun:
        """Return a run found in processing without a completion time to draft."""
        payroll_run = await self.get_payroll_run(payroll_run_id)
        if payroll_run.processed_at is not None:
            raise InvalidTransitionError(
                payroll_run.status,
                PayrollRunStatus.DRAFT,
                "run has already completed processing",
            )
        return await self._simple_transition(
            payroll_run_id, PayrollRunStatus.PROCESSING, PayrollRunStatus.DRAFT
        )

    # === Internals ===

    async def _simple_transition(
        self,
        payroll_run_id: UUID,
        expected: PayrollRunStatus,
        target: PayrollRunStatus,
    ) -> PayrollRun:
        payroll_run = await self.get_payroll_run(payroll_run_id)
        try:
            await self._compare_and_set(payroll_run, expected, target)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError(f"Updating payroll run {payroll_run_id} failed") from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Payroll run %s moved %s → %s", payroll_run_id, expected.value, target.value)
        return await self.get_payroll_run(payroll_run_id)

    async def _compare_and_set(
        self,
        payroll_run: PayrollRun,
        expected: PayrollRunStatus,
        target: PayrollRunStatus,
        **values: object,
    ) -> None:
        """Move the run from expected to target only if it is still in expected.

        The conditional UPDATE must touch exactly one row; otherwise another
        caller changed the status first (or it was never in expected).
        """
        PayrollRunStateMachine.validate_transition(expected, target)

        result = await self.session.execute(
            update(PayrollRun)
            .where(
                PayrollRun.id == payroll_run.id,
                PayrollRun.status == expected.value,
            )
            .values(status=target.value, **values)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(payroll_run)

        if result.rowcount != 1:
            logger.warning(
                "Payroll run %s is %s, expected %s for transition to %s",
                payroll_run.id,
                payroll_run.status,
                expected.value,
                target.value,
            )
            raise InvalidTransitionError(
                payroll_run.status,
                target,
                f"expected status '{expected.value}', found '{payroll_run.status}'",
            )

    async def _find_by_period(self, month: int, year: int) -> PayrollRun | None:
        result = await self.session.execute(
            select(PayrollRun).where(PayrollRun.month == month, PayrollRun.year == year)
        )
        return result.scalar_one_or_none()

    def _require_draft(self, payroll_run: PayrollRun) -> PayrollRun:
        if not PayrollRunStateMachine.can_process(payroll_run.status):
            raise InvalidStateError(
                f"Payroll for {payroll_run.month}/{payroll_run.year} "
                f"is already {payroll_run.status}"
            )
        return payroll_run

    def _build_payslip(self, payroll_run: PayrollRun, figures: PayslipFigures) -> Payslip:
        salary = figures.salary
        attendance = figures.attendance
        deductions = figures.deductions
        return Payslip(
            payroll_run_id=payroll_run.id,
            employee_id=figures.employee_id,
            month=payroll_run.month,
            year=payroll_run.year,
            working_days=figures.working_days,
            present_days=attendance.present_days,
            absent_days=attendance.absent_days,
            leave_days=attendance.leave_days,
            overtime_hours=attendance.overtime_hours,
            basic_salary=salary.basic_salary,
            housing_allowance=salary.housing_allowance,
            transport_allowance=salary.transport_allowance,
            medical_allowance=salary.medical_allowance,
            utility_allowance=salary.utility_allowance,
            other_allowances=salary.other_allowances,
            overtime_pay=figures.overtime_pay,
            gross_salary=figures.gross_salary,
            income_tax=deductions.income_tax,
            eobi_contribution=deductions.eobi.employee,
            sessi_contribution=deductions.sessi.employee,
            employer_eobi_contribution=deductions.eobi.employer,
            employer_sessi_contribution=deductions.sessi.employer,
            loan_deduction=deductions.loan_deduction,
            other_deductions=deductions.other_deductions,
            total_deductions=deductions.total_deductions,
            net_salary=deductions.net_salary,
            taxable_income=figures.taxable_income,
            tax_slab=deductions.tax_slab,
            is_filer=salary.is_filer,
            status=PayslipStatus.GENERATED.value,
        )
