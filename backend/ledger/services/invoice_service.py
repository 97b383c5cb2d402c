"""Invoice aggregate: creation, edits, status overrides and cascading deletes.

Every public command runs in one transaction. Repositories only flush; this
service commits on success and rolls back on any error before re-raising.
"""

import logging
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger.core.config import settings
from ledger.core.errors import ConflictError, NotFoundError, ValidationFailedError
from ledger.models.invoice import DiscountType, Invoice, InvoiceStatus
from ledger.models.invoice_document import InvoiceDocument
from ledger.models.shared import utc_now
from ledger.repositories.invoice_document_repository import InvoiceDocumentRepository
from ledger.repositories.invoice_line_item_repository import InvoiceLineItemRepository
from ledger.repositories.invoice_repository import InvoiceRepository
from ledger.repositories.payment_repository import PaymentRepository
from ledger.schemas.invoice import (
    BulkDeleteResponse,
    InvoiceCreate,
    InvoiceCreateResult,
    InvoiceLineItemCreate,
    InvoiceUpdate,
)
from ledger.schemas.invoice_document import InvoiceDocumentCreate
from ledger.services.history_service import HistoryAction, HistoryService
from ledger.services.invoice_lifecycle import ensure_transition
from ledger.services.ownership import OwnershipResolver
from ledger.services.recalculation_service import (
    RecalculationService,
    compute_billed_total,
    to_money,
)
from ledger.services.sequence_service import DocumentCounter, SequenceService

logger = logging.getLogger(__name__)

MONETARY_FIELDS = (
    "line_item_sub_total",
    "tax_amount",
    "discount_amount",
    "total_amount",
    "amount_paid",
    "balance_due",
)

# Fields whose change requires the totals to be recomputed
RECALCULATION_TRIGGERS = frozenset({"tax_rate", "discount_type", "discount_value"})


def line_item_values(item: InvoiceLineItemCreate) -> dict[str, Any]:
    values = item.model_dump()
    if item.item_type is not None:
        values["item_type"] = item.item_type.value
    if item.billed_total is None:
        values["billed_total"] = compute_billed_total(
            item.quantity, item.unit_price, item.billing_percentage
        )
    return values


def _as_datetime(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


def _history_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, DiscountType | InvoiceStatus):
        return value.value
    return str(value)


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.line_item_repo = InvoiceLineItemRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.document_repo = InvoiceDocumentRepository(db)
        self.sequence = SequenceService(db)
        self.recalculation = RecalculationService(db)
        self.history = HistoryService(db)
        self.ownership = OwnershipResolver(db)

    def get_invoice_or_404(self, invoice_id: UUID, organization_id: UUID) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id, organization_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def create_invoice(
        self,
        data: InvoiceCreate,
        actor_id: str,
        organization_id: UUID | None = None,
        today: date | None = None,
    ) -> InvoiceCreateResult:
        """Create a draft invoice with its line items.

        The owning organization is derived before anything is written. Totals
        are computed from the line items unless ``INVOICE_TRUST_CALLER_TOTALS``
        is enabled, in which case the supplied amounts are stored as given.
        """
        if (
            organization_id is not None
            and data.organization_id is not None
            and organization_id != data.organization_id
        ):
            raise ValidationFailedError(
                "organization_id in the body does not match the X-Organization-Id header"
            )
        owner_id = self.ownership.resolve(
            organization_id=data.organization_id or organization_id,
            job_id=data.job_id,
            bid_id=data.bid_id,
        )

        values = data.model_dump(exclude={"organization_id", "line_items", *MONETARY_FIELDS})
        if data.discount_type is not None:
            values["discount_type"] = data.discount_type.value
        if data.tax_rate is None:
            values["tax_rate"] = 0
        if settings.INVOICE_TRUST_CALLER_TOTALS:
            for field in MONETARY_FIELDS:
                supplied = getattr(data, field)
                if supplied is not None:
                    values[field] = to_money(supplied)

        try:
            invoice_number = self.sequence.next_document_number(
                owner_id, DocumentCounter.INVOICE_NUMBER, today
            )
            invoice = self.invoice_repo.create(
                invoice_number=invoice_number,
                organization_id=owner_id,
                status=InvoiceStatus.DRAFT.value,
                created_by=actor_id,
                **values,
            )
            for item in data.line_items:
                self.line_item_repo.create(invoice.id, **line_item_values(item))  # type: ignore[arg-type]
            if not settings.INVOICE_TRUST_CALLER_TOTALS:
                self.recalculation.apply(invoice, actor_id=actor_id, today=today, derive=False)
            self.history.record(
                invoice,
                HistoryAction.CREATED,
                actor_id,
                new_value=invoice_number,
                description=f"Invoice {invoice_number} created",
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Invoice number already exists, retry the request") from exc
        except Exception:
            self.db.rollback()
            raise

        logger.info("Created invoice %s for organization %s", invoice_number, owner_id)
        return InvoiceCreateResult(
            invoice_id=invoice.id,  # type: ignore[arg-type]
            organization_id=owner_id,
        )

    def get_invoice(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        include_line_items: bool = True,
        include_payments: bool = True,
        include_documents: bool = True,
        include_history: bool = False,
    ) -> dict[str, Any] | None:
        """Invoice composed with the requested children, or ``None``."""
        invoice = self.invoice_repo.get_by_id(invoice_id, organization_id)
        if not invoice:
            return None
        view: dict[str, Any] = {"invoice": invoice}
        if include_line_items:
            view["line_items"] = self.line_item_repo.get_by_invoice_id(invoice_id)
        if include_payments:
            view["payments"] = self.payment_repo.get_by_invoice_id(invoice_id)
        if include_documents:
            view["documents"] = self.document_repo.get_by_invoice_id(invoice_id)
        if include_history:
            view["history"] = self.history.list_for_invoice(invoice_id)
        return view

    def list_invoices(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        **filters: Any,
    ) -> tuple[list[Invoice], int]:
        """Page of invoices plus the total count for the same filters."""
        invoices = self.invoice_repo.get_all(
            organization_id, skip=skip, limit=limit, order_by=order_by, **filters
        )
        return invoices, self.invoice_repo.count(organization_id, **filters)

    def update_invoice(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        data: InvoiceUpdate,
        actor_id: str,
        today: date | None = None,
    ) -> Invoice:
        """Apply the supplied fields. A supplied status goes through the state machine."""
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        patch = data.model_dump(exclude_unset=True)
        target_status: InvoiceStatus | None = patch.pop("status", None)
        if "discount_type" in patch and patch["discount_type"] is not None:
            patch["discount_type"] = DiscountType(patch["discount_type"]).value
        self._check_merged_fields(invoice, patch)

        old_data = {key: _history_value(getattr(invoice, key)) for key in patch}
        new_data = {key: _history_value(value) for key, value in patch.items()}

        try:
            if patch:
                self.invoice_repo.update(invoice, patch)
            if target_status is not None and target_status.value != invoice.status:
                self._change_status(invoice, target_status, actor_id)
            if RECALCULATION_TRIGGERS & patch.keys():
                self.recalculation.apply(invoice, actor_id=actor_id, today=today)
            self.history.record_changes(invoice, actor_id, old_data, new_data)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(invoice)
        return invoice

    def delete_invoice(self, invoice_id: UUID, organization_id: UUID, actor_id: str) -> None:
        """Soft delete the invoice with its line items and documents. Payments are kept."""
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        try:
            self._soft_delete(invoice, actor_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Deleted invoice %s", invoice.invoice_number)

    def bulk_delete(
        self, invoice_ids: list[UUID], organization_id: UUID, actor_id: str
    ) -> BulkDeleteResponse:
        """Soft delete several invoices at once. Unknown or already deleted ids are skipped."""
        if len(invoice_ids) > settings.BULK_DELETE_MAX_IDS:
            raise ValidationFailedError(
                f"At most {settings.BULK_DELETE_MAX_IDS} invoices can be deleted at once"
            )
        deleted = 0
        skipped = 0
        try:
            for invoice_id in dict.fromkeys(invoice_ids):
                invoice = self.invoice_repo.get_by_id(invoice_id, organization_id)
                if not invoice:
                    skipped += 1
                    continue
                self._soft_delete(invoice, actor_id)
                deleted += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Bulk deleted %d invoices (%d skipped)", deleted, skipped)
        return BulkDeleteResponse(deleted=deleted, skipped=skipped)

    def mark_sent(self, invoice_id: UUID, organization_id: UUID, actor_id: str) -> Invoice:
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        return self._run_status_command(
            invoice,
            InvoiceStatus.SENT,
            actor_id,
            action=HistoryAction.SENT,
            new_value=None,
            description="Invoice sent",
        )

    def mark_paid(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        actor_id: str,
        paid_date: date | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """Operator override: flag the invoice as paid without recording a payment."""
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        paid_on = paid_date or utc_now().date()
        return self._run_status_command(
            invoice,
            InvoiceStatus.PAID,
            actor_id,
            action=HistoryAction.MARKED_PAID,
            new_value=paid_on.isoformat(),
            description=notes or "Invoice marked as paid",
            paid_date=paid_on,
        )

    def void_invoice(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        actor_id: str,
        reason: str,
        notes: str | None = None,
    ) -> Invoice:
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        return self._run_status_command(
            invoice,
            InvoiceStatus.VOID,
            actor_id,
            action=HistoryAction.VOIDED,
            new_value=reason,
            description=notes or f"Invoice voided: {reason}",
        )

    def cancel_invoice(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        actor_id: str,
        reason: str,
        notes: str | None = None,
    ) -> Invoice:
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        return self._run_status_command(
            invoice,
            InvoiceStatus.CANCELLED,
            actor_id,
            action=HistoryAction.CANCELLED,
            new_value=reason,
            description=notes or f"Invoice cancelled: {reason}",
        )

    def recalculate(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        actor_id: str,
        today: date | None = None,
    ) -> Invoice:
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        try:
            self.recalculation.apply(invoice, actor_id=actor_id, today=today)
            self.history.record(
                invoice,
                HistoryAction.RECALCULATED,
                actor_id,
                new_value=str(invoice.total_amount),
                description="Totals recalculated",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(invoice)
        return invoice

    def add_document(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        data: InvoiceDocumentCreate,
        actor_id: str,
    ) -> InvoiceDocument:
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        try:
            document = self.document_repo.create(
                invoice_id, uploaded_by=actor_id, **data.model_dump()
            )
            self.history.record(
                invoice,
                HistoryAction.DOCUMENT_ADDED,
                actor_id,
                new_value=data.file_name,
                description=f"Document {data.file_name} attached",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(document)
        return document

    def delete_document(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        document_id: UUID,
        actor_id: str,
    ) -> None:
        invoice = self.get_invoice_or_404(invoice_id, organization_id)
        document = self.document_repo.get_by_id(document_id, invoice_id)
        if not document:
            raise NotFoundError(f"Document {document_id} not found")
        try:
            self.document_repo.soft_delete(document, utc_now())
            self.history.record(
                invoice,
                HistoryAction.DOCUMENT_DELETED,
                actor_id,
                old_value=str(document.file_name),
                description=f"Document {document.file_name} removed",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _run_status_command(
        self,
        invoice: Invoice,
        target: InvoiceStatus,
        actor_id: str,
        action: str,
        new_value: str | None,
        description: str,
        paid_date: date | None = None,
    ) -> Invoice:
        try:
            self._change_status(invoice, target, actor_id, paid_date=paid_date, record=False)
            self.history.record(
                invoice,
                action,
                actor_id,
                old_value=None,
                new_value=new_value,
                description=description,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(invoice)
        return invoice

    def _change_status(
        self,
        invoice: Invoice,
        target: InvoiceStatus,
        actor_id: str,
        paid_date: date | None = None,
        record: bool = True,
    ) -> None:
        current = InvoiceStatus(invoice.status)
        ensure_transition(current, target)
        values: dict[str, Any] = {"status": target.value}
        if target == InvoiceStatus.SENT and invoice.sent_date is None:
            values["sent_date"] = utc_now()
        if target == InvoiceStatus.PAID:
            values["paid_date"] = _as_datetime(paid_date or utc_now().date())
        self.invoice_repo.update(invoice, values)
        if record:
            self.history.record(
                invoice,
                HistoryAction.STATUS_CHANGED,
                actor_id,
                old_value=current.value,
                new_value=target.value,
                description="Status changed manually",
            )

    def _soft_delete(self, invoice: Invoice, actor_id: str) -> None:
        invoice_id = UUID(str(invoice.id))
        now = utc_now()
        self.line_item_repo.soft_delete_by_invoice_id(invoice_id)
        self.document_repo.soft_delete_by_invoice_id(invoice_id, now)
        self.invoice_repo.soft_delete(invoice, deleted_by=actor_id, deleted_at=now)
        self.history.record(
            invoice,
            HistoryAction.DELETED,
            actor_id,
            old_value=str(invoice.invoice_number),
            description="Invoice deleted",
        )

    def _check_merged_fields(self, invoice: Invoice, patch: dict[str, Any]) -> None:
        issue_date = patch.get("issue_date", invoice.issue_date)
        due_date = patch.get("due_date", invoice.due_date)
        if issue_date and due_date and due_date < issue_date:
            raise ValidationFailedError("due_date cannot be before issue_date")

        discount_type = patch.get("discount_type", invoice.discount_type)
        discount_value = patch.get("discount_value", invoice.discount_value)
        if (
            discount_type == DiscountType.PERCENTAGE.value
            and discount_value is not None
            and discount_value > 100
        ):
            raise ValidationFailedError("Percentage discount cannot exceed 100")
