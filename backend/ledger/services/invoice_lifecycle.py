"""Invoice status state machine."""

from ledger.core.errors import InvalidStatusTransitionError
from ledger.models.invoice import InvoiceStatus

TERMINAL_STATUSES = frozenset({InvoiceStatus.VOID, InvoiceStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset(
        {
            InvoiceStatus.SENT,
            InvoiceStatus.PARTIAL,
            InvoiceStatus.PAID,
            InvoiceStatus.OVERDUE,
            InvoiceStatus.VOID,
            InvoiceStatus.CANCELLED,
        }
    ),
    InvoiceStatus.SENT: frozenset(
        {
            InvoiceStatus.PARTIAL,
            InvoiceStatus.PAID,
            InvoiceStatus.OVERDUE,
            InvoiceStatus.VOID,
            InvoiceStatus.CANCELLED,
        }
    ),
    InvoiceStatus.PARTIAL: frozenset(
        {
            InvoiceStatus.PAID,
            InvoiceStatus.OVERDUE,
            InvoiceStatus.VOID,
            InvoiceStatus.CANCELLED,
        }
    ),
    InvoiceStatus.PAID: frozenset(
        {InvoiceStatus.PARTIAL, InvoiceStatus.VOID, InvoiceStatus.CANCELLED}
    ),
    InvoiceStatus.OVERDUE: frozenset(
        {
            InvoiceStatus.PARTIAL,
            InvoiceStatus.PAID,
            InvoiceStatus.VOID,
            InvoiceStatus.CANCELLED,
        }
    ),
    InvoiceStatus.VOID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def can_transition(current: InvoiceStatus | str, target: InvoiceStatus | str) -> bool:
    return InvoiceStatus(target) in ALLOWED_TRANSITIONS[InvoiceStatus(current)]


def ensure_transition(current: InvoiceStatus | str, target: InvoiceStatus | str) -> None:
    """Raise ``InvalidStatusTransitionError`` unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(InvoiceStatus(current).value, InvoiceStatus(target).value)


def is_terminal(status: InvoiceStatus | str) -> bool:
    return InvoiceStatus(status) in TERMINAL_STATUSES
