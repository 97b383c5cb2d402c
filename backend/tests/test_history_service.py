"""Tests for HistoryService."""

import pytest

from ledger.models.invoice_history import InvoiceHistory
from ledger.schemas.invoice import InvoiceCreate
from ledger.services.history_service import HistoryAction, HistoryService
from ledger.services.invoice_service import InvoiceService
from tests.conftest import ACTOR_ID, DEFAULT_JOB_ID, DEFAULT_ORG_ID


@pytest.fixture
def invoice(db_session):
    invoices = InvoiceService(db_session)
    result = invoices.create_invoice(InvoiceCreate(job_id=DEFAULT_JOB_ID), ACTOR_ID)
    return invoices.get_invoice_or_404(result.invoice_id, DEFAULT_ORG_ID)


@pytest.fixture
def history(db_session):
    return HistoryService(db_session)


class TestRecord:
    def test_record_copies_invoice_scope(self, history, db_session, invoice):
        entry = history.record(
            invoice, HistoryAction.SENT, ACTOR_ID, old_value="draft", new_value="sent"
        )
        db_session.commit()

        assert entry.invoice_id == invoice.id
        assert entry.organization_id == DEFAULT_ORG_ID
        assert entry.performed_by == ACTOR_ID
        assert entry.created_at is not None


class TestRecordChanges:
    def test_only_changed_fields(self, history, invoice):
        entry = history.record_changes(
            invoice,
            ACTOR_ID,
            old_data={"notes": "a", "billing_city": "Austin", "payment_terms": "Net 30"},
            new_data={"notes": "b", "billing_city": "Austin", "payment_terms": "Net 15"},
        )

        assert entry.action == HistoryAction.UPDATED
        assert entry.old_value == "notes=a, payment_terms=Net 30"
        assert entry.new_value == "notes=b, payment_terms=Net 15"
        assert entry.description == "Updated notes, payment_terms"

    def test_nothing_changed(self, history, db_session, invoice):
        before = db_session.query(InvoiceHistory).count()
        assert history.record_changes(invoice, ACTOR_ID, {"notes": "a"}, {"notes": "a"}) is None
        assert db_session.query(InvoiceHistory).count() == before


class TestListForInvoice:
    def test_newest_first_and_action_filter(self, history, db_session, invoice):
        history.record(invoice, HistoryAction.SENT, ACTOR_ID)
        db_session.commit()
        history.record(invoice, HistoryAction.VOIDED, ACTOR_ID)
        db_session.commit()

        entries = history.list_for_invoice(invoice.id)
        assert [e.action for e in entries] == [
            HistoryAction.VOIDED,
            HistoryAction.SENT,
            HistoryAction.CREATED,
        ]
        assert [e.action for e in history.list_for_invoice(invoice.id, action="sent")] == [
            HistoryAction.SENT
        ]
        assert len(history.list_for_invoice(invoice.id, skip=1, limit=1)) == 1
