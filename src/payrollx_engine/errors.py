"""Exception types raised by the payroll engine.

Each error carries an HTTP-ish status code and a stable machine code so the
API layer can translate it without inspecting messages.
"""

from __future__ import annotations


class PayrollError(Exception):
    """Base class for all payroll engine errors."""

    status_code = 500
    code = "INTERNAL_ERROR"


class NotFoundError(PayrollError):
    """Raised when a run, worker or payslip does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidStateError(PayrollError):
    """Raised when an operation is not legal in the current run status."""

    status_code = 400
    code = "INVALID_STATE"


class PayrollValidationError(PayrollError):
    """Raised for malformed input, before anything is persisted."""

    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class PersistenceError(PayrollError):
    """Raised when the store aborts a unit of work. Nothing was persisted."""

    status_code = 500
    code = "INTERNAL_ERROR"
