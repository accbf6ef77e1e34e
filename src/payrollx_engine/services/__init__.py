"""Payroll engine services."""

from payrollx_engine.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
    PayslipStatus,
)
from payrollx_engine.services.payroll_run_service import PayrollRunService, validate_period
from payrollx_engine.services.salary_structure_service import (
    SalaryStructureService,
    SalaryStructureUpdate,
)

__all__ = [
    "PayrollRunStateMachine",
    "PayrollRunStatus",
    "PayslipStatus",
    "InvalidTransitionError",
    "PayrollRunService",
    "validate_period",
    "SalaryStructureService",
    "SalaryStructureUpdate",
]
