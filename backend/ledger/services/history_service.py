"""History service for recording state changes to invoices."""

from uuid import UUID

from sqlalchemy.orm import Session

from ledger.models.invoice import Invoice
from ledger.models.invoice_history import InvoiceHistory
from ledger.repositories.invoice_history_repository import InvoiceHistoryRepository


class HistoryAction:
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    SENT = "sent"
    MARKED_PAID = "marked_paid"
    VOIDED = "voided"
    CANCELLED = "cancelled"
    RECALCULATED = "recalculated"
    LINE_ITEM_ADDED = "line_item_added"
    LINE_ITEM_UPDATED = "line_item_updated"
    LINE_ITEM_DELETED = "line_item_deleted"
    PAYMENT_RECORDED = "payment_recorded"
    PAYMENT_UPDATED = "payment_updated"
    PAYMENT_DELETED = "payment_deleted"
    DOCUMENT_ADDED = "document_added"
    DOCUMENT_DELETED = "document_deleted"


class HistoryService:
    """Appends entries to the invoice history. Entries are never changed afterwards."""

    def __init__(self, db: Session):
        self.repo = InvoiceHistoryRepository(db)

    def record(
        self,
        invoice: Invoice,
        action: str,
        performed_by: str,
        old_value: str | None = None,
        new_value: str | None = None,
        description: str | None = None,
    ) -> InvoiceHistory:
        return self.repo.create(
            invoice_id=invoice.id,  # type: ignore[arg-type]
            organization_id=invoice.organization_id,  # type: ignore[arg-type]
            action=action,
            performed_by=performed_by,
            old_value=old_value,
            new_value=new_value,
            description=description,
        )

    def record_changes(
        self,
        invoice: Invoice,
        performed_by: str,
        old_data: dict[str, object],
        new_data: dict[str, object],
    ) -> InvoiceHistory | None:
        """Record an ``updated`` entry listing only the fields whose value changed."""
        changed = sorted(key for key in new_data if old_data.get(key) != new_data.get(key))
        if not changed:
            return None
        return self.record(
            invoice,
            HistoryAction.UPDATED,
            performed_by,
            old_value=", ".join(f"{key}={old_data.get(key)}" for key in changed),
            new_value=", ".join(f"{key}={new_data.get(key)}" for key in changed),
            description=f"Updated {', '.join(changed)}",
        )

    def list_for_invoice(
        self,
        invoice_id: UUID,
        skip: int = 0,
        limit: int = 100,
        action: str | None = None,
    ) -> list[InvoiceHistory]:
        """History of an invoice, newest first."""
        return self.repo.get_by_invoice_id(invoice_id, skip=skip, limit=limit, action=action)
