"""Domain errors raised by the ledger services.

Each error carries a machine-readable ``code`` and the HTTP status the API
layer maps it to. Services raise these; routers never build error responses
by hand (see ``ledger.main`` exception handlers).
"""

from typing import Any


class LedgerError(Exception):
    """Base class for all ledger errors."""

    code = "UNEXPECTED"
    status_code = 500

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(LedgerError):
    """Invoice, line item, payment, document, job or bid missing or soft-deleted."""

    code = "NOT_FOUND"
    status_code = 404


class MissingOwnerReferenceError(LedgerError):
    """Neither a job, a bid nor an organization was supplied, or the chain is broken."""

    code = "MISSING_OWNER_REFERENCE"
    status_code = 400


class InvalidOwnerError(LedgerError):
    """The supplied organization does not match the one derived from the job/bid."""

    code = "INVALID_OWNER"
    status_code = 409


class ValidationFailedError(LedgerError):
    code = "VALIDATION_FAILED"
    status_code = 400


class ConflictError(LedgerError):
    code = "CONFLICT"
    status_code = 409


class InvalidStatusTransitionError(ConflictError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot change invoice status from '{current}' to '{target}'",
            detail={"current_status": current, "target_status": target},
        )
        self.current = current
        self.target = target
