"""Payroll run, payslip and tax API endpoints."""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from payrollx_engine.api.dependencies import ActingUser, Policy, RunService
from payrollx_engine.api.schemas import (
    ErrorResponse,
    PayrollRunCreate,
    PayrollRunListResponse,
    PayrollRunResponse,
    PayslipListResponse,
    PayslipResponse,
    TaxCalculationRequest,
    TaxCalculationResponse,
    TaxSlabListResponse,
    TaxSlabResponse,
)
from payrollx_engine.calculators.tax_calculator import TaxCalculator
from payrollx_engine.models import Payslip

router = APIRouter(prefix="/payroll", tags=["payroll"])

StatusFilter = Literal["draft", "processing", "completed", "approved", "cancelled"]


def _payslip_response(payslip: Payslip) -> PayslipResponse:
    resp = PayslipResponse.model_validate(payslip)
    resp.employee_name = payslip.employee.full_name if payslip.employee else None
    return resp


# ============================================================================
# Payroll Runs
# ============================================================================


@router.post(
    "/runs",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_payroll_run(
    service: RunService,
    user_id: ActingUser,
    payload: PayrollRunCreate,
) -> PayrollRunResponse:
    """Create the draft run for a month, or return the existing draft."""
    payroll_run = await service.create_payroll_run(payload.month, payload.year, user_id)
    return PayrollRunResponse.model_validate(payroll_run)


@router.get(
    "/runs",
    response_model=PayrollRunListResponse,
)
async def list_payroll_runs(
    service: RunService,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    year: Annotated[int | None, Query(ge=2020, le=2100)] = None,
    status_filter: Annotated[StatusFilter | None, Query(alias="status")] = None,
) -> PayrollRunListResponse:
    """List payroll runs, newest period first."""
    runs, total = await service.list_payroll_runs(
        year=year, status=status_filter, page=page, limit=limit
    )
    return PayrollRunListResponse(
        items=[PayrollRunResponse.model_validate(r) for r in runs],
        total=total,
        page=page,
        limit=limit,
    )


@router.get(
    "/runs/{payroll_run_id}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_run(
    service: RunService,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Get a specific payroll run by ID."""
    return PayrollRunResponse.model_validate(await service.get_payroll_run(payroll_run_id))


# ============================================================================
# Payroll Run State Transitions
# ============================================================================


@router.post(
    "/runs/{payroll_run_id}/process",
    response_model=PayrollRunResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def process_payroll_run(
    service: RunService,
    user_id: ActingUser,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Generate payslips for every active employee. Only draft runs can be processed."""
    payroll_run = await service.process_payroll_run(payroll_run_id, processed_by=user_id)
    return PayrollRunResponse.model_validate(payroll_run)


@router.post(
    "/runs/{payroll_run_id}/approve",
    response_model=PayrollRunResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def approve_payroll_run(
    service: RunService,
    user_id: ActingUser,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Approve a completed run and freeze its payslips."""
    payroll_run = await service.approve_payroll_run(payroll_run_id, approved_by=user_id)
    return PayrollRunResponse.model_validate(payroll_run)


@router.post(
    "/runs/{payroll_run_id}/cancel",
    response_model=PayrollRunResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def cancel_payroll_run(
    service: RunService,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Cancel a draft run."""
    return PayrollRunResponse.model_validate(await service.cancel_payroll_run(payroll_run_id))


@router.post(
    "/runs/{payroll_run_id}/reset",
    response_model=PayrollRunResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def reset_payroll_run(
    service: RunService,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Return a run stuck in processing to draft."""
    return PayrollRunResponse.model_validate(await service.reset_stuck_run(payroll_run_id))


# ============================================================================
# Payslips
# ============================================================================


@router.get(
    "/payslips",
    response_model=PayslipListResponse,
)
async def list_payslips(
    service: RunService,
    payroll_run_id: UUID | None = None,
    employee_id: UUID | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PayslipListResponse:
    """List payslips, optionally for one run or one employee."""
    payslips, total = await service.list_payslips(
        payroll_run_id=payroll_run_id,
        employee_id=employee_id,
        page=page,
        limit=limit,
    )
    return PayslipListResponse(
        items=[_payslip_response(p) for p in payslips],
        total=total,
        page=page,
        limit=limit,
    )


@router.get(
    "/payslips/{payslip_id}",
    response_model=PayslipResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payslip(
    service: RunService,
    payslip_id: Annotated[UUID, Path()],
) -> PayslipResponse:
    """Get a specific payslip by ID."""
    return _payslip_response(await service.get_payslip(payslip_id))


# ============================================================================
# Tax
# ============================================================================


@router.post(
    "/calculate-tax",
    response_model=TaxCalculationResponse,
)
async def calculate_tax(
    policy: Policy,
    payload: TaxCalculationRequest,
) -> TaxCalculationResponse:
    """Preview the deduction breakdown for a monthly gross salary."""
    breakdown = TaxCalculator(policy).all_deductions(
        payload.gross_salary,
        payload.is_filer,
        loan_deduction=payload.loan_deduction,
        other_deductions=payload.other_deductions,
    )
    return TaxCalculationResponse(
        gross_salary=breakdown.gross_salary,
        income_tax=breakdown.income_tax,
        tax_slab=breakdown.tax_slab,
        effective_tax_rate=breakdown.effective_tax_rate,
        eobi_employee=breakdown.eobi.employee,
        eobi_employer=breakdown.eobi.employer,
        sessi_employee=breakdown.sessi.employee,
        sessi_employer=breakdown.sessi.employer,
        loan_deduction=breakdown.loan_deduction,
        other_deductions=breakdown.other_deductions,
        total_deductions=breakdown.total_deductions,
        employer_contributions=breakdown.employer_contributions,
        net_salary=breakdown.net_salary,
        is_filer=breakdown.is_filer,
    )


@router.get(
    "/tax-slabs",
    response_model=TaxSlabListResponse,
)
async def get_tax_slabs(
    policy: Policy,
    slab_type: Annotated[Literal["filer", "non_filer"], Query(alias="type")] = "filer",
) -> TaxSlabListResponse:
    """Get the ordered bracket table for filers or non-filers."""
    brackets = TaxCalculator(policy).bracket_table(is_filer=slab_type == "filer")
    return TaxSlabListResponse(
        type=slab_type,
        tax_year=policy.tax_year,
        slabs=[
            TaxSlabResponse(
                min=b.min_amount,
                max=b.max_amount,
                rate=b.rate,
                fixed=b.fixed_amount,
                label=b.label,
            )
            for b in brackets
        ],
    )

