"""Background repair of invoice totals and derived status."""

import logging
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ledger.core.config import settings
from ledger.models.shared import SYSTEM_ACTOR
from ledger.repositories.invoice_repository import InvoiceRepository
from ledger.services.recalculation_service import RecalculationService

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    checked: int = 0
    repaired: int = 0
    failed: int = 0


class ReconciliationService:
    """Re-runs recalculation for invoices that may hold stale totals.

    Each invoice is handled in its own transaction so one failure does not
    block the rest of the batch.
    """

    def __init__(self, db: Session):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.recalculation = RecalculationService(db)

    def reconcile_stale_invoices(self, limit: int | None = None) -> ReconciliationResult:
        """Recalculate invoices whose payments changed after the invoice was last saved."""
        invoice_ids = self.invoice_repo.get_stale_invoice_ids(
            limit=limit or settings.RECONCILE_BATCH_SIZE
        )
        result = self.recalculate_invoices(invoice_ids, today=None)
        logger.info(
            "Reconciled %d stale invoices (%d failed)", result.repaired, result.failed
        )
        return result

    def refresh_overdue_invoices(
        self, today: date | None = None, limit: int | None = None
    ) -> ReconciliationResult:
        """Recalculate unpaid invoices past due so their status becomes ``overdue``."""
        today = today or date.today()
        invoice_ids = self.invoice_repo.get_overdue_candidate_ids(
            today, limit=limit or settings.RECONCILE_BATCH_SIZE
        )
        result = self.recalculate_invoices(invoice_ids, today=today)
        logger.info(
            "Refreshed %d overdue candidates (%d failed)", result.repaired, result.failed
        )
        return result

    def recalculate_invoices(
        self, invoice_ids: list[UUID], today: date | None = None
    ) -> ReconciliationResult:
        result = ReconciliationResult(checked=len(invoice_ids))
        for invoice_id in invoice_ids:
            try:
                self.recalculation.recalculate(invoice_id, actor_id=SYSTEM_ACTOR, today=today)
                self.db.commit()
                result.repaired += 1
            except Exception:
                self.db.rollback()
                result.failed += 1
                logger.exception("Failed to recalculate invoice %s", invoice_id)
        return result
