from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from ledger.models.invoice_document import InvoiceDocument


class InvoiceDocumentRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_invoice_id(self, invoice_id: UUID) -> list[InvoiceDocument]:
        return (
            self.db.query(InvoiceDocument)
            .filter(
                InvoiceDocument.invoice_id == invoice_id,
                InvoiceDocument.is_deleted.is_(False),
            )
            .order_by(InvoiceDocument.created_at.desc())
            .all()
        )

    def get_by_id(self, document_id: UUID, invoice_id: UUID) -> InvoiceDocument | None:
        return (
            self.db.query(InvoiceDocument)
            .filter(
                InvoiceDocument.id == document_id,
                InvoiceDocument.invoice_id == invoice_id,
                InvoiceDocument.is_deleted.is_(False),
            )
            .first()
        )

    def create(self, invoice_id: UUID, uploaded_by: str, **values: Any) -> InvoiceDocument:
        document = InvoiceDocument(invoice_id=invoice_id, uploaded_by=uploaded_by, **values)
        self.db.add(document)
        self.db.flush()
        return document

    def soft_delete(self, document: InvoiceDocument, deleted_at: datetime) -> InvoiceDocument:
        document.is_deleted = True  # type: ignore[assignment]
        document.deleted_at = deleted_at  # type: ignore[assignment]
        self.db.flush()
        return document

    def soft_delete_by_invoice_id(self, invoice_id: UUID, deleted_at: datetime) -> int:
        count = (
            self.db.query(InvoiceDocument)
            .filter(
                InvoiceDocument.invoice_id == invoice_id,
                InvoiceDocument.is_deleted.is_(False),
            )
            .update(
                {InvoiceDocument.is_deleted: True, InvoiceDocument.deleted_at: deleted_at},
                synchronize_session="fetch",
            )
        )
        self.db.flush()
        return int(count)
