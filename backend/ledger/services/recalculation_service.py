"""Invoice totals and derived status.

Totals are always recomputed from the persisted line items and payments, never
adjusted incrementally, so running a recalculation twice gives the same result.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from ledger.core.errors import NotFoundError
from ledger.models.invoice import DiscountType, Invoice, InvoiceStatus
from ledger.models.shared import SYSTEM_ACTOR, utc_now
from ledger.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from ledger.repositories.invoice_repository import InvoiceRepository
from ledger.repositories.payment_repository import PaymentRepository
from ledger.services.history_service import HistoryAction, HistoryService
from ledger.services.invoice_lifecycle import TERMINAL_STATUSES, can_transition

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_money(value: Decimal | int | float | str | None) -> Decimal:
    """Quantize to two decimal places, rounding half up."""
    if value is None:
        return ZERO.quantize(CENT)
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_billed_total(
    quantity: Decimal, unit_price: Decimal, billing_percentage: Decimal | None
) -> Decimal:
    """Display amount of a line item. Not used for invoice totals."""
    percentage = Decimal(str(billing_percentage if billing_percentage is not None else HUNDRED))
    return to_money(Decimal(str(quantity)) * Decimal(str(unit_price)) * percentage / HUNDRED)


@dataclass(frozen=True)
class InvoiceTotals:
    line_item_sub_total: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "line_item_sub_total": self.line_item_sub_total,
            "tax_amount": self.tax_amount,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "amount_paid": self.amount_paid,
            "balance_due": self.balance_due,
        }


def compute_totals(
    lines: Iterable[tuple[Decimal, Decimal]],
    tax_rate: Decimal | None,
    discount_type: DiscountType | str | None,
    discount_value: Decimal | None,
    payment_amounts: Iterable[Decimal],
) -> InvoiceTotals:
    """Compute invoice totals.

    Args:
        lines: ``(quantity, unit_price)`` of every non-deleted line item.
        tax_rate: Invoice-level tax rate applied to each line, e.g. ``0.08``.
        discount_type: ``percentage``, ``fixed`` or ``None``.
        discount_value: Percentage (0-100) or fixed amount, capped at the subtotal.
        payment_amounts: Amounts of every non-deleted payment.
    """
    rate = Decimal(str(tax_rate or 0))
    subtotal = ZERO
    tax = ZERO
    for quantity, unit_price in lines:
        line_amount = Decimal(str(quantity)) * Decimal(str(unit_price))
        subtotal += line_amount
        tax += line_amount * rate
    subtotal = to_money(subtotal)
    tax = to_money(tax)

    discount = ZERO
    if discount_type is not None and discount_value is not None:
        kind = DiscountType(discount_type)
        if kind == DiscountType.PERCENTAGE:
            discount = subtotal * Decimal(str(discount_value)) / HUNDRED
        elif kind == DiscountType.FIXED:
            discount = Decimal(str(discount_value))
    # a discount never takes the pre-tax amount below zero
    discount = min(to_money(discount), subtotal)

    total = (subtotal - discount) + tax
    amount_paid = to_money(sum((Decimal(str(a)) for a in payment_amounts), ZERO))
    balance_due = max(ZERO, total - amount_paid)

    return InvoiceTotals(
        line_item_sub_total=subtotal,
        tax_amount=tax,
        discount_amount=discount,
        total_amount=to_money(total),
        amount_paid=amount_paid,
        balance_due=to_money(balance_due),
    )


def derive_status(
    current: InvoiceStatus | str,
    totals: InvoiceTotals,
    due_date: date | None,
    today: date,
    sent: bool = False,
    marked_paid: bool = False,
) -> InvoiceStatus:
    """Status implied by the totals. Returns ``current`` when nothing applies.

    An invoice whose payments were all removed leaves ``paid``/``partial`` again,
    unless it was marked paid by an operator (``marked_paid``).
    """
    current = InvoiceStatus(current)
    if is_reopened(current, totals, marked_paid):
        if totals.balance_due > ZERO and due_date is not None and due_date < today:
            return InvoiceStatus.OVERDUE
        return InvoiceStatus.SENT if sent else InvoiceStatus.DRAFT
    if totals.amount_paid > ZERO and totals.balance_due == ZERO:
        return InvoiceStatus.PAID
    if totals.amount_paid > ZERO and totals.balance_due > ZERO:
        return InvoiceStatus.PARTIAL
    if (
        totals.balance_due > ZERO
        and due_date is not None
        and due_date < today
        and current not in (InvoiceStatus.PAID, InvoiceStatus.PARTIAL)
    ):
        return InvoiceStatus.OVERDUE
    return current


def is_reopened(
    current: InvoiceStatus, totals: InvoiceTotals, marked_paid: bool = False
) -> bool:
    if totals.amount_paid != ZERO:
        return False
    if current == InvoiceStatus.PARTIAL:
        return True
    return current == InvoiceStatus.PAID and not marked_paid


class RecalculationService:
    """Writes freshly computed totals and derived status onto an invoice.

    Does not commit; callers run it inside their own transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.line_item_repo = InvoiceLineItemRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.history = HistoryService(db)

    def recalculate(
        self,
        invoice_id: UUID,
        actor_id: str | None = None,
        today: date | None = None,
    ) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return self.apply(invoice, actor_id=actor_id, today=today)

    def apply(
        self,
        invoice: Invoice,
        actor_id: str | None = None,
        today: date | None = None,
        derive: bool = True,
    ) -> Invoice:
        invoice_id = UUID(str(invoice.id))
        lines = [
            (item.quantity, item.unit_price)
            for item in self.line_item_repo.get_by_invoice_id(invoice_id)
        ]
        payments = [payment.amount for payment in self.payment_repo.get_by_invoice_id(invoice_id)]

        totals = compute_totals(
            lines,
            tax_rate=invoice.tax_rate,  # type: ignore[arg-type]
            discount_type=invoice.discount_type,  # type: ignore[arg-type]
            discount_value=invoice.discount_value,  # type: ignore[arg-type]
            payment_amounts=payments,
        )
        values: dict[str, object] = dict(totals.as_dict())
        # Always bumped so reconciliation can tell the invoice is up to date
        values["updated_at"] = utc_now()

        current = InvoiceStatus(invoice.status)
        derived = derive_status(
            current,
            totals,
            invoice.due_date,  # type: ignore[arg-type]
            today or date.today(),
            sent=invoice.sent_date is not None,
            marked_paid=invoice.paid_date is not None,
        )
        # Reopening is the one derived move outside the operator transition table
        allowed = can_transition(current, derived) or (
            current not in TERMINAL_STATUSES and is_reopened(current, totals)
        )
        status_changed = derive and derived != current and allowed
        if status_changed:
            values["status"] = derived.value

        self.invoice_repo.update(invoice, values)

        if status_changed:
            self.history.record(
                invoice,
                HistoryAction.STATUS_CHANGED,
                actor_id or SYSTEM_ACTOR,
                old_value=current.value,
                new_value=derived.value,
                description="Status derived from recalculated totals",
            )
            logger.info(
                "Invoice %s status changed from %s to %s",
                invoice.invoice_number,
                current.value,
                derived.value,
            )
        return invoice
