import logging
from typing import Any
from uuid import UUID

from arq import cron

from ledger.core.database import SessionLocal
from ledger.core.logging import setup_logging
from ledger.services.reconciliation_service import ReconciliationService
from ledger.tasks import redis_settings

logger = logging.getLogger(__name__)


async def startup(ctx: dict[str, Any]) -> None:
    setup_logging()


async def reconcile_invoice_totals_task(ctx: dict[str, Any]) -> int:
    """Background task: recalculate invoices whose totals lag behind their payments.

    A payment commits before its invoice is recalculated; when that second step
    fails the invoice is picked up here. Runs every 15 minutes.
    """
    db = SessionLocal()
    try:
        result = ReconciliationService(db).reconcile_stale_invoices()
        if result.repaired > 0:
            logger.info("Reconciled %d invoices", result.repaired)
        return result.repaired
    finally:
        db.close()


async def refresh_overdue_invoices_task(ctx: dict[str, Any]) -> int:
    """Background task: move unpaid invoices past their due date to ``overdue``.

    Runs daily.
    """
    db = SessionLocal()
    try:
        result = ReconciliationService(db).refresh_overdue_invoices()
        if result.repaired > 0:
            logger.info("Refreshed %d overdue invoices", result.repaired)
        return result.repaired
    finally:
        db.close()


async def recalculate_invoice_task(ctx: dict[str, Any], invoice_id: str) -> bool:
    """Background task: recalculate a single invoice on demand."""
    db = SessionLocal()
    try:
        result = ReconciliationService(db).recalculate_invoices([UUID(invoice_id)], today=None)
        return result.failed == 0
    finally:
        db.close()


class WorkerSettings:
    functions = [
        reconcile_invoice_totals_task,
        refresh_overdue_invoices_task,
        recalculate_invoice_task,
    ]
    cron_jobs = [
        cron(reconcile_invoice_totals_task, minute={0, 15, 30, 45}),  # every 15 minutes
        cron(refresh_overdue_invoices_task, hour=1, minute=0),  # daily at 01:00
    ]
    on_startup = startup
    redis_settings = redis_settings
