from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from ledger.models.invoice_line_item import InvoiceLineItem


class InvoiceLineItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_invoice_id(self, invoice_id: UUID) -> list[InvoiceLineItem]:
        """Non-deleted line items of an invoice in display order."""
        return (
            self.db.query(InvoiceLineItem)
            .filter(
                InvoiceLineItem.invoice_id == invoice_id,
                InvoiceLineItem.is_deleted.is_(False),
            )
            .order_by(InvoiceLineItem.sort_order.asc(), InvoiceLineItem.created_at.asc())
            .all()
        )

    def get_by_id(self, line_item_id: UUID, invoice_id: UUID) -> InvoiceLineItem | None:
        return (
            self.db.query(InvoiceLineItem)
            .filter(
                InvoiceLineItem.id == line_item_id,
                InvoiceLineItem.invoice_id == invoice_id,
                InvoiceLineItem.is_deleted.is_(False),
            )
            .first()
        )

    def create(self, invoice_id: UUID, **values: Any) -> InvoiceLineItem:
        line_item = InvoiceLineItem(invoice_id=invoice_id, **values)
        self.db.add(line_item)
        self.db.flush()
        return line_item

    def update(self, line_item: InvoiceLineItem, values: dict[str, Any]) -> InvoiceLineItem:
        for key, value in values.items():
            setattr(line_item, key, value)
        self.db.flush()
        return line_item

    def soft_delete(self, line_item: InvoiceLineItem) -> InvoiceLineItem:
        line_item.is_deleted = True  # type: ignore[assignment]
        self.db.flush()
        return line_item

    def soft_delete_by_invoice_id(self, invoice_id: UUID) -> int:
        """Soft-delete every remaining line item of an invoice. Returns the row count."""
        count = (
            self.db.query(InvoiceLineItem)
            .filter(
                InvoiceLineItem.invoice_id == invoice_id,
                InvoiceLineItem.is_deleted.is_(False),
            )
            .update({InvoiceLineItem.is_deleted: True}, synchronize_session="fetch")
        )
        self.db.flush()
        return int(count)
