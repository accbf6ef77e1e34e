"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from payrollx_engine.calculators.policy import PayrollPolicy
from payrollx_engine.config import get_policy
from payrollx_engine.database import init_db
from payrollx_engine.services.payroll_run_service import PayrollRunService


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_user_id(
    x_user_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Extract the acting user's ID from the X-User-ID header, if present."""
    if not x_user_id:
        return None
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-ID format",
        )


def get_payroll_policy() -> PayrollPolicy:
    """Get the deployment's payroll policy."""
    return get_policy()


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
ActingUser = Annotated[UUID | None, Depends(get_user_id)]
Policy = Annotated[PayrollPolicy, Depends(get_payroll_policy)]


def get_payroll_run_service(db: DbSession, policy: Policy) -> PayrollRunService:
    return PayrollRunService(db, policy)


RunService = Annotated[PayrollRunService, Depends(get_payroll_run_service)]
