"""Repository for the append-only invoice history."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from ledger.models.invoice_history import InvoiceHistory


class InvoiceHistoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        invoice_id: UUID,
        organization_id: UUID,
        action: str,
        performed_by: str,
        old_value: str | None = None,
        new_value: str | None = None,
        description: str | None = None,
    ) -> InvoiceHistory:
        entry = InvoiceHistory(
            invoice_id=invoice_id,
            organization_id=organization_id,
            action=action,
            old_value=old_value,
            new_value=new_value,
            description=description,
            performed_by=performed_by,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_by_invoice_id(
        self,
        invoice_id: UUID,
        skip: int = 0,
        limit: int = 100,
        action: str | None = None,
    ) -> list[InvoiceHistory]:
        query = self.db.query(InvoiceHistory).filter(InvoiceHistory.invoice_id == invoice_id)
        if action is not None:
            query = query.filter(InvoiceHistory.action == action)
        return (
            query.order_by(InvoiceHistory.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
