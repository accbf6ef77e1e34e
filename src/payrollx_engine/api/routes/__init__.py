"""API routes."""

from payrollx_engine.api.routes.health import router as health_router
from payrollx_engine.api.routes.payroll import router as payroll_router

__all__ = ["payroll_router", "health_router"]
