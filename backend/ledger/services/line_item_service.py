"""Line item commands. Every mutation recalculates the parent invoice in the same transaction."""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ledger.core.errors import NotFoundError
from ledger.models.invoice import Invoice
from ledger.models.invoice_line_item import InvoiceLineItem
from ledger.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from ledger.repositories.invoice_repository import InvoiceRepository
from ledger.schemas.invoice import InvoiceLineItemCreate, InvoiceLineItemUpdate
from ledger.services.history_service import HistoryAction, HistoryService
from ledger.services.invoice_service import line_item_values
from ledger.services.recalculation_service import (
    RecalculationService,
    compute_billed_total,
    to_money,
)


class LineItemService:
    def __init__(self, db: Session):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.line_item_repo = InvoiceLineItemRepository(db)
        self.recalculation = RecalculationService(db)
        self.history = HistoryService(db)

    def _get_invoice(self, invoice_id: UUID, organization_id: UUID) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id, organization_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def _get_line_item(self, invoice_id: UUID, line_item_id: UUID) -> InvoiceLineItem:
        line_item = self.line_item_repo.get_by_id(line_item_id, invoice_id)
        if not line_item:
            raise NotFoundError(f"Line item {line_item_id} not found")
        return line_item

    def list_line_items(self, invoice_id: UUID, organization_id: UUID) -> list[InvoiceLineItem]:
        self._get_invoice(invoice_id, organization_id)
        return self.line_item_repo.get_by_invoice_id(invoice_id)

    def get_line_item(
        self, invoice_id: UUID, organization_id: UUID, line_item_id: UUID
    ) -> InvoiceLineItem:
        self._get_invoice(invoice_id, organization_id)
        return self._get_line_item(invoice_id, line_item_id)

    def add_line_item(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        data: InvoiceLineItemCreate,
        actor_id: str,
        today: date | None = None,
    ) -> InvoiceLineItem:
        invoice = self._get_invoice(invoice_id, organization_id)
        try:
            line_item = self.line_item_repo.create(invoice_id, **line_item_values(data))
            self.recalculation.apply(invoice, actor_id=actor_id, today=today)
            self.history.record(
                invoice,
                HistoryAction.LINE_ITEM_ADDED,
                actor_id,
                new_value=f"{data.title}: {data.quantity} x {data.unit_price}",
                description=f"Line item {data.title} added",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(line_item)
        return line_item

    def update_line_item(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        line_item_id: UUID,
        data: InvoiceLineItemUpdate,
        actor_id: str,
        today: date | None = None,
    ) -> InvoiceLineItem:
        invoice = self._get_invoice(invoice_id, organization_id)
        line_item = self._get_line_item(invoice_id, line_item_id)

        patch = data.model_dump(exclude_unset=True)
        if patch.get("item_type") is not None:
            patch["item_type"] = patch["item_type"].value
        pricing_changed = {"quantity", "unit_price", "billing_percentage"} & patch.keys()
        if pricing_changed and "billed_total" not in patch:
            patch["billed_total"] = compute_billed_total(
                patch.get("quantity", line_item.quantity),
                patch.get("unit_price", line_item.unit_price),
                patch.get("billing_percentage", line_item.billing_percentage),
            )
        before = self._describe(line_item)

        try:
            self.line_item_repo.update(line_item, patch)
            self.recalculation.apply(invoice, actor_id=actor_id, today=today)
            self.history.record(
                invoice,
                HistoryAction.LINE_ITEM_UPDATED,
                actor_id,
                old_value=before,
                new_value=self._describe(line_item),
                description=f"Line item {line_item.title} updated",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(line_item)
        return line_item

    def delete_line_item(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        line_item_id: UUID,
        actor_id: str,
        today: date | None = None,
    ) -> None:
        invoice = self._get_invoice(invoice_id, organization_id)
        line_item = self._get_line_item(invoice_id, line_item_id)
        try:
            self.line_item_repo.soft_delete(line_item)
            self.recalculation.apply(invoice, actor_id=actor_id, today=today)
            self.history.record(
                invoice,
                HistoryAction.LINE_ITEM_DELETED,
                actor_id,
                old_value=self._describe(line_item),
                description=f"Line item {line_item.title} deleted",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def _describe(line_item: InvoiceLineItem) -> str:
        quantity = to_money(line_item.quantity)  # type: ignore[arg-type]
        unit_price = to_money(line_item.unit_price)  # type: ignore[arg-type]
        return f"{line_item.title}: {quantity} x {unit_price}"
