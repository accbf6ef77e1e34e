"""Payroll run state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from payrollx_engine.errors import InvalidStateError


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "draft"
    PROCESSING = "processing"
    COMPLETED = "completed"
    APPROVED = "approved"
    CANCELLED = "cancelled"


class PayslipStatus(str, Enum):
    """Payslip status values."""

    GENERATED = "generated"
    APPROVED = "approved"


class InvalidTransitionError(InvalidStateError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = _value(from_status)
        self.to_status = _value(to_status)
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


def _value(status: str) -> str:
    return status.value if isinstance(status, PayrollRunStatus) else str(status)


class PayrollRunStateMachine:
    """State machine for payroll run status transitions.

    Allowed transitions:
    - draft → processing
    - processing → completed
    - completed → approved
    - draft → cancelled
    - processing → draft (manual recovery of a stuck run)
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[PayrollRunStatus, list[PayrollRunStatus]] = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.PROCESSING, PayrollRunStatus.CANCELLED],
        PayrollRunStatus.PROCESSING: [PayrollRunStatus.COMPLETED, PayrollRunStatus.DRAFT],
        PayrollRunStatus.COMPLETED: [PayrollRunStatus.APPROVED],
        PayrollRunStatus.APPROVED: [],  # Terminal state
        PayrollRunStatus.CANCELLED: [],  # Terminal state
    }

    # Statuses whose payslips may be regenerated
    PROCESSING_ALLOWED = {PayrollRunStatus.DRAFT}

    # Statuses where payslips are frozen
    RESULTS_IMMUTABLE = {PayrollRunStatus.APPROVED, PayrollRunStatus.CANCELLED}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        try:
            source = PayrollRunStatus(from_status)
            target = PayrollRunStatus(to_status)
        except ValueError:
            return False
        return target in cls.VALID_TRANSITIONS[source]

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_process(cls, status: str) -> bool:
        """Check if payslips may be (re)generated in this status."""
        return _coerce(status) in cls.PROCESSING_ALLOWED

    @classmethod
    def are_results_immutable(cls, status: str) -> bool:
        """Check if payslips are frozen in this status."""
        return _coerce(status) in cls.RESULTS_IMMUTABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[PayrollRunStatus]:
        """Get list of valid next statuses from current status."""
        source = _coerce(current_status)
        if source is None:
            return []
        return list(cls.VALID_TRANSITIONS[source])


def _coerce(status: str) -> PayrollRunStatus | None:
    try:
        return PayrollRunStatus(status)
    except ValueError:
        return None
