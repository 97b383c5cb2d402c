"""Payment ledger.

A payment write commits on its own. The parent invoice is recalculated
afterwards in a second transaction; if that fails the payment is kept and the
reconciliation job brings the invoice back in line.
"""

import logging
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger.core.errors import ConflictError, InvalidOwnerError, NotFoundError
from ledger.models.invoice import Invoice
from ledger.models.payment import Payment
from ledger.models.shared import utc_now
from ledger.repositories.invoice_repository import InvoiceRepository
from ledger.repositories.payment_repository import PaymentRepository
from ledger.schemas.payment import PaymentCreate, PaymentUpdate
from ledger.services.history_service import HistoryAction, HistoryService
from ledger.services.ownership import OwnershipResolver
from ledger.services.recalculation_service import RecalculationService
from ledger.services.sequence_service import DocumentCounter, SequenceService

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, db: Session):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.sequence = SequenceService(db)
        self.recalculation = RecalculationService(db)
        self.history = HistoryService(db)
        self.ownership = OwnershipResolver(db)

    def _get_invoice(self, invoice_id: UUID, organization_id: UUID) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id, organization_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def _get_payment(self, invoice_id: UUID, organization_id: UUID, payment_id: UUID) -> Payment:
        payment = self.payment_repo.get_by_id(payment_id, organization_id, invoice_id=invoice_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    def get_invoice_payment(
        self, invoice_id: UUID, organization_id: UUID, payment_id: UUID
    ) -> Payment:
        self._get_invoice(invoice_id, organization_id)
        return self._get_payment(invoice_id, organization_id, payment_id)

    def get_payment(self, payment_id: UUID, organization_id: UUID) -> Payment:
        payment = self.payment_repo.get_by_id(payment_id, organization_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    def list_payments(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        **filters: Any,
    ) -> tuple[list[Payment], int]:
        payments = self.payment_repo.get_all(
            organization_id, skip=skip, limit=limit, order_by=order_by, **filters
        )
        return payments, self.payment_repo.count(organization_id, **filters)

    def list_invoice_payments(self, invoice_id: UUID, organization_id: UUID) -> list[Payment]:
        self._get_invoice(invoice_id, organization_id)
        return self.payment_repo.get_by_invoice_id(invoice_id)

    def create_payment(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        data: PaymentCreate,
        actor_id: str,
        today: date | None = None,
    ) -> Payment:
        """Record a payment and recalculate the invoice.

        The payment's organization is derived from the invoice's job/bid chain
        when the invoice has one; an explicit organization in the body must
        agree with it.
        """
        invoice = self._get_invoice(invoice_id, organization_id)
        owner_id = UUID(str(invoice.organization_id))
        if invoice.job_id is not None or invoice.bid_id is not None:
            owner_id = self.ownership.resolve(
                organization_id=data.organization_id,
                job_id=invoice.job_id,  # type: ignore[arg-type]
                bid_id=invoice.bid_id,  # type: ignore[arg-type]
            )
        elif data.organization_id is not None and data.organization_id != owner_id:
            raise InvalidOwnerError("Organization does not match the invoice's organization")

        try:
            payment_number = self.sequence.next_document_number(
                owner_id, DocumentCounter.PAYMENT_NUMBER, today
            )
            payment = self.payment_repo.create(
                payment_number=payment_number,
                organization_id=owner_id,
                invoice_id=invoice_id,
                amount=data.amount,
                payment_date=data.payment_date,
                payment_method=data.payment_method.value,
                reference_number=data.reference_number,
                notes=data.notes,
                created_by=actor_id,
            )
            self.history.record(
                invoice,
                HistoryAction.PAYMENT_RECORDED,
                actor_id,
                new_value=f"{payment_number}: {data.amount}",
                description=f"Payment {payment_number} of {data.amount} recorded",
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("Payment number already exists, retry the request") from exc
        except Exception:
            self.db.rollback()
            raise

        logger.info("Recorded payment %s on invoice %s", payment_number, invoice_id)
        self.recalculate_after_commit(invoice_id, actor_id, today)
        self.db.refresh(payment)
        return payment

    def update_payment(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        payment_id: UUID,
        data: PaymentUpdate,
        actor_id: str,
        today: date | None = None,
    ) -> Payment:
        invoice = self._get_invoice(invoice_id, organization_id)
        payment = self._get_payment(invoice_id, organization_id, payment_id)
        patch = data.model_dump(exclude_unset=True)
        if patch.get("payment_method") is not None:
            patch["payment_method"] = patch["payment_method"].value
        old_amount = payment.amount

        try:
            self.payment_repo.update(payment, patch)
            self.history.record(
                invoice,
                HistoryAction.PAYMENT_UPDATED,
                actor_id,
                old_value=f"{payment.payment_number}: {old_amount}",
                new_value=f"{payment.payment_number}: {payment.amount}",
                description=f"Payment {payment.payment_number} updated",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.recalculate_after_commit(invoice_id, actor_id, today)
        self.db.refresh(payment)
        return payment

    def delete_payment(
        self,
        invoice_id: UUID,
        organization_id: UUID,
        payment_id: UUID,
        actor_id: str,
        today: date | None = None,
    ) -> None:
        invoice = self._get_invoice(invoice_id, organization_id)
        payment = self._get_payment(invoice_id, organization_id, payment_id)
        try:
            self.payment_repo.soft_delete(payment, utc_now())
            self.history.record(
                invoice,
                HistoryAction.PAYMENT_DELETED,
                actor_id,
                old_value=f"{payment.payment_number}: {payment.amount}",
                description=f"Payment {payment.payment_number} deleted",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.recalculate_after_commit(invoice_id, actor_id, today)

    def recalculate_after_commit(
        self, invoice_id: UUID, actor_id: str, today: date | None = None
    ) -> Invoice | None:
        """Recalculate the invoice in its own transaction.

        Failures are logged and swallowed: the payment is already durable and
        ``ReconciliationService`` repairs the invoice on its next run.
        """
        try:
            invoice = self.recalculation.recalculate(invoice_id, actor_id=actor_id, today=today)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "Recalculation of invoice %s failed after payment write; left for reconciliation",
                invoice_id,
            )
            return None
        return invoice
