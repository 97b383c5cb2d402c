"""Tests for worker background tasks and cron job registration."""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from ledger.core import database as db_module
from ledger.models.invoice import Invoice, InvoiceStatus
from ledger.schemas.invoice import InvoiceCreate, InvoiceLineItemCreate
from ledger.schemas.payment import PaymentCreate
from ledger.services.invoice_service import InvoiceService
from ledger.services.payment_service import PaymentService
from ledger.services.reconciliation_service import ReconciliationResult
from ledger.worker import (
    WorkerSettings,
    recalculate_invoice_task,
    reconcile_invoice_totals_task,
    refresh_overdue_invoices_task,
)
from tests.conftest import ACTOR_ID, DEFAULT_JOB_ID, DEFAULT_ORG_ID


def _create_invoice(db_session, **overrides) -> Invoice:
    payload = {
        "job_id": DEFAULT_JOB_ID,
        "line_items": [InvoiceLineItemCreate(title="Labor", unit_price=Decimal("100"))],
    }
    payload.update(overrides)
    service = InvoiceService(db_session)
    result = service.create_invoice(InvoiceCreate(**payload), ACTOR_ID)
    return service.get_invoice_or_404(result.invoice_id, DEFAULT_ORG_ID)


class TestReconcileInvoiceTotalsTask:
    @pytest.mark.asyncio
    async def test_returns_repaired_count(self):
        mock_service = MagicMock()
        mock_service.reconcile_stale_invoices.return_value = ReconciliationResult(
            checked=3, repaired=2, failed=1
        )

        with patch("ledger.worker.ReconciliationService", return_value=mock_service) as mock_cls:
            result = await reconcile_invoice_totals_task({})

        assert result == 2
        mock_cls.assert_called_once()
        assert mock_cls.call_args[0][0] is not None

    @pytest.mark.asyncio
    async def test_repairs_invoice_after_failed_recalculation(self, db_session):
        invoice = _create_invoice(db_session)
        payments = PaymentService(db_session)
        with patch.object(
            payments.recalculation, "recalculate", side_effect=RuntimeError("boom")
        ):
            payments.create_payment(
                invoice.id,
                DEFAULT_ORG_ID,
                PaymentCreate(amount=Decimal("100"), payment_date=date.today()),
                ACTOR_ID,
            )

        with patch("ledger.worker.SessionLocal", db_module.SessionLocal):
            result = await reconcile_invoice_totals_task({})

        assert result == 1
        db_session.expire_all()
        repaired = db_session.get(Invoice, invoice.id)
        assert repaired.amount_paid == Decimal("100.00")
        assert repaired.status == InvoiceStatus.PAID.value


class TestRefreshOverdueInvoicesTask:
    @pytest.mark.asyncio
    async def test_marks_past_due_invoice_overdue(self, db_session):
        yesterday = date.today() - timedelta(days=1)
        invoice = _create_invoice(db_session, issue_date=yesterday, due_date=yesterday)

        with patch("ledger.worker.SessionLocal", db_module.SessionLocal):
            result = await refresh_overdue_invoices_task({})

        assert result == 1
        db_session.expire_all()
        assert db_session.get(Invoice, invoice.id).status == InvoiceStatus.OVERDUE.value

    @pytest.mark.asyncio
    async def test_nothing_to_refresh(self):
        with patch("ledger.worker.SessionLocal", db_module.SessionLocal):
            assert await refresh_overdue_invoices_task({}) == 0


class TestRecalculateInvoiceTask:
    @pytest.mark.asyncio
    async def test_recalculates_single_invoice(self, db_session):
        invoice = _create_invoice(db_session)

        with patch("ledger.worker.SessionLocal", db_module.SessionLocal):
            assert await recalculate_invoice_task({}, str(invoice.id)) is True

    @pytest.mark.asyncio
    async def test_unknown_invoice_reports_failure(self):
        with patch("ledger.worker.SessionLocal", db_module.SessionLocal):
            assert await recalculate_invoice_task({}, str(uuid4())) is False


class TestWorkerSettings:
    def test_functions_registered(self):
        names = {f.__name__ for f in WorkerSettings.functions}
        assert names == {
            "reconcile_invoice_totals_task",
            "refresh_overdue_invoices_task",
            "recalculate_invoice_task",
        }

    def test_cron_jobs(self):
        crons = {job.coroutine.__name__: job for job in WorkerSettings.cron_jobs}
        assert crons["reconcile_invoice_totals_task"].minute == {0, 15, 30, 45}
        assert crons["refresh_overdue_invoices_task"].hour == 1
        assert crons["refresh_overdue_invoices_task"].minute == 0
