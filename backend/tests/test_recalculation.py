"""Tests for invoice totals, derived status and the recalculation service."""

from datetime import date
from decimal import Decimal

import pytest

from ledger.core.errors import NotFoundError
from ledger.models.invoice import Invoice, InvoiceStatus
from ledger.models.invoice_line_item import InvoiceLineItem
from ledger.models.payment import Payment
from ledger.services.history_service import HistoryAction, HistoryService
from ledger.services.recalculation_service import (
    InvoiceTotals,
    RecalculationService,
    compute_billed_total,
    compute_totals,
    derive_status,
    to_money,
)
from tests.conftest import ACTOR_ID, DEFAULT_JOB_ID, DEFAULT_ORG_ID

TODAY = date(2025, 6, 1)
D = Decimal


def _totals(paid: str, balance: str, total: str = "100.00") -> InvoiceTotals:
    return InvoiceTotals(
        line_item_sub_total=D(total),
        tax_amount=D("0.00"),
        discount_amount=D("0.00"),
        total_amount=D(total),
        amount_paid=D(paid),
        balance_due=D(balance),
    )


class TestComputeTotals:
    def test_subtotal_and_tax(self):
        totals = compute_totals([(D("2"), D("50.00"))], D("0.08"), None, None, [])
        assert totals.line_item_sub_total == D("100.00")
        assert totals.tax_amount == D("8.00")
        assert totals.discount_amount == D("0.00")
        assert totals.total_amount == D("108.00")
        assert totals.amount_paid == D("0.00")
        assert totals.balance_due == D("108.00")

    def test_percentage_discount(self):
        totals = compute_totals([(D("1"), D("100.00"))], D("0"), "percentage", D("10"), [])
        assert totals.discount_amount == D("10.00")
        assert totals.total_amount == D("90.00")

    def test_fixed_discount(self):
        totals = compute_totals([(D("1"), D("100.00"))], D("0"), "fixed", D("25.50"), [])
        assert totals.discount_amount == D("25.50")
        assert totals.total_amount == D("74.50")

    def test_fixed_discount_capped_at_subtotal(self):
        totals = compute_totals([(D("1"), D("100.00"))], D("0.08"), "fixed", D("150"), [])
        assert totals.discount_amount == D("100.00")
        assert totals.tax_amount == D("8.00")
        assert totals.total_amount == D("8.00")
        assert totals.balance_due == D("8.00")

    def test_fixed_discount_without_lines(self):
        totals = compute_totals([], D("0"), "fixed", D("20"), [])
        assert totals.discount_amount == D("0.00")
        assert totals.total_amount == D("0.00")

    def test_discount_without_type_is_ignored(self):
        totals = compute_totals([(D("1"), D("100.00"))], D("0"), None, D("25"), [])
        assert totals.discount_amount == D("0.00")

    def test_tax_is_not_reduced_by_discount(self):
        totals = compute_totals([(D("1"), D("100.00"))], D("0.10"), "percentage", D("50"), [])
        assert totals.tax_amount == D("10.00")
        assert totals.total_amount == D("60.00")

    def test_overpayment_clamps_balance_to_zero(self):
        totals = compute_totals([(D("1"), D("10.00"))], D("0"), None, None, [D("15.00")])
        assert totals.amount_paid == D("15.00")
        assert totals.balance_due == D("0.00")

    def test_rounds_half_up(self):
        # Tax is summed before rounding: 0.0525 + 0.005 = 0.0575 -> 0.06
        totals = compute_totals(
            [(D("3"), D("0.35")), (D("1"), D("0.10"))], D("0.05"), None, None, []
        )
        assert totals.line_item_sub_total == D("1.15")
        assert totals.tax_amount == D("0.06")

    def test_no_lines_no_payments(self):
        totals = compute_totals([], None, None, None, [])
        assert totals.total_amount == D("0.00")
        assert totals.balance_due == D("0.00")

    def test_invariants_hold(self):
        totals = compute_totals(
            [(D("1.5"), D("19.99")), (D("4"), D("7.25"))],
            D("0.0825"),
            "percentage",
            D("12.5"),
            [D("10.00"), D("5.55")],
        )
        assert totals.total_amount == (
            totals.line_item_sub_total - totals.discount_amount
        ) + totals.tax_amount
        assert totals.balance_due == max(D("0"), totals.total_amount - totals.amount_paid)


class TestDeriveStatus:
    def test_fully_paid(self):
        assert derive_status("sent", _totals("100.00", "0.00"), None, TODAY) == InvoiceStatus.PAID

    def test_partially_paid(self):
        assert (
            derive_status("draft", _totals("40.00", "60.00"), None, TODAY)
            == InvoiceStatus.PARTIAL
        )

    def test_overdue_when_unpaid_past_due_date(self):
        assert (
            derive_status("sent", _totals("0.00", "100.00"), date(2025, 5, 1), TODAY)
            == InvoiceStatus.OVERDUE
        )

    def test_not_overdue_on_due_date(self):
        assert (
            derive_status("sent", _totals("0.00", "100.00"), TODAY, TODAY) == InvoiceStatus.SENT
        )

    def test_overdue_requires_due_date(self):
        assert derive_status("sent", _totals("0.00", "100.00"), None, TODAY) == InvoiceStatus.SENT

    def test_marked_paid_is_not_moved_to_overdue(self):
        assert (
            derive_status(
                "paid", _totals("0.00", "100.00"), date(2025, 1, 1), TODAY, marked_paid=True
            )
            == InvoiceStatus.PAID
        )

    def test_reopened_after_payments_removed(self):
        assert derive_status("paid", _totals("0.00", "100.00"), None, TODAY) == (
            InvoiceStatus.DRAFT
        )
        assert derive_status("partial", _totals("0.00", "100.00"), None, TODAY, sent=True) == (
            InvoiceStatus.SENT
        )

    def test_reopened_past_due_goes_overdue(self):
        assert (
            derive_status("paid", _totals("0.00", "100.00"), date(2025, 1, 1), TODAY)
            == InvoiceStatus.OVERDUE
        )

    def test_zero_total_stays_unchanged(self):
        assert derive_status("draft", _totals("0.00", "0.00", "0.00"), None, TODAY) == (
            InvoiceStatus.DRAFT
        )


class TestHelpers:
    def test_to_money(self):
        assert to_money("1.005") == D("1.01")
        assert to_money(None) == D("0.00")

    def test_billed_total(self):
        assert compute_billed_total(D("2"), D("50.00"), D("50")) == D("50.00")
        assert compute_billed_total(D("3"), D("10.00"), None) == D("30.00")


@pytest.fixture
def invoice(db_session):
    invoice = Invoice(
        invoice_number="INV-2025-00001",
        organization_id=DEFAULT_ORG_ID,
        job_id=DEFAULT_JOB_ID,
        tax_rate=D("0.08"),
        created_by=ACTOR_ID,
    )
    db_session.add(invoice)
    db_session.commit()
    return invoice


def _add_line(db_session, invoice, quantity: str, unit_price: str, **kwargs) -> InvoiceLineItem:
    line = InvoiceLineItem(
        invoice_id=invoice.id,
        title="Labor",
        quantity=D(quantity),
        unit_price=D(unit_price),
        **kwargs,
    )
    db_session.add(line)
    db_session.commit()
    return line


def _add_payment(db_session, invoice, amount: str, number: str, **kwargs) -> Payment:
    payment = Payment(
        payment_number=number,
        organization_id=DEFAULT_ORG_ID,
        invoice_id=invoice.id,
        amount=D(amount),
        payment_date=TODAY,
        created_by=ACTOR_ID,
        **kwargs,
    )
    db_session.add(payment)
    db_session.commit()
    return payment


class TestRecalculationService:
    def test_two_lines_with_tax(self, db_session, invoice):
        _add_line(db_session, invoice, "1", "50.00")
        _add_line(db_session, invoice, "1", "50.00")

        result = RecalculationService(db_session).recalculate(invoice.id, today=TODAY)
        db_session.commit()

        assert result.line_item_sub_total == D("100.00")
        assert result.tax_amount == D("8.00")
        assert result.total_amount == D("108.00")
        assert result.balance_due == D("108.00")
        assert result.status == InvoiceStatus.DRAFT.value

    def test_full_payment_marks_paid(self, db_session, invoice):
        _add_line(db_session, invoice, "2", "50.00")
        _add_payment(db_session, invoice, "108.00", "PAY-2025-00001")

        result = RecalculationService(db_session).recalculate(invoice.id, ACTOR_ID, TODAY)
        db_session.commit()

        assert result.amount_paid == D("108.00")
        assert result.balance_due == D("0.00")
        assert result.status == InvoiceStatus.PAID.value

    def test_partial_payment(self, db_session, invoice):
        _add_line(db_session, invoice, "2", "50.00")
        _add_payment(db_session, invoice, "50.00", "PAY-2025-00001")

        result = RecalculationService(db_session).recalculate(invoice.id, ACTOR_ID, TODAY)
        db_session.commit()

        assert result.balance_due == D("58.00")
        assert result.status == InvoiceStatus.PARTIAL.value

    def test_deleted_rows_are_excluded(self, db_session, invoice):
        _add_line(db_session, invoice, "1", "100.00")
        _add_line(db_session, invoice, "1", "40.00", is_deleted=True)
        _add_payment(db_session, invoice, "30.00", "PAY-2025-00001", is_deleted=True)

        result = RecalculationService(db_session).recalculate(invoice.id, today=TODAY)
        db_session.commit()

        assert result.line_item_sub_total == D("100.00")
        assert result.amount_paid == D("0.00")

    def test_status_change_is_recorded(self, db_session, invoice):
        _add_line(db_session, invoice, "1", "10.00")
        _add_payment(db_session, invoice, "10.80", "PAY-2025-00001")

        RecalculationService(db_session).recalculate(invoice.id, ACTOR_ID, TODAY)
        db_session.commit()

        entries = HistoryService(db_session).list_for_invoice(
            invoice.id, action=HistoryAction.STATUS_CHANGED
        )
        assert len(entries) == 1
        assert entries[0].old_value == "draft"
        assert entries[0].new_value == "paid"
        assert entries[0].performed_by == ACTOR_ID

    def test_is_idempotent(self, db_session, invoice):
        _add_line(db_session, invoice, "3", "33.33")
        _add_payment(db_session, invoice, "20.00", "PAY-2025-00001")
        service = RecalculationService(db_session)

        first = service.recalculate(invoice.id, ACTOR_ID, TODAY)
        db_session.commit()
        snapshot = (first.total_amount, first.balance_due, first.status)
        second = service.recalculate(invoice.id, ACTOR_ID, TODAY)
        db_session.commit()

        assert (second.total_amount, second.balance_due, second.status) == snapshot
        entries = HistoryService(db_session).list_for_invoice(
            invoice.id, action=HistoryAction.STATUS_CHANGED
        )
        assert len(entries) == 1

    def test_terminal_status_is_never_changed(self, db_session, invoice):
        invoice.status = InvoiceStatus.VOID.value
        db_session.commit()
        _add_line(db_session, invoice, "1", "10.00")
        _add_payment(db_session, invoice, "10.80", "PAY-2025-00001")

        result = RecalculationService(db_session).recalculate(invoice.id, today=TODAY)
        db_session.commit()

        assert result.balance_due == D("0.00")
        assert result.status == InvoiceStatus.VOID.value

    def test_overdue(self, db_session, invoice):
        invoice.due_date = date(2025, 5, 1)
        db_session.commit()
        _add_line(db_session, invoice, "1", "10.00")

        result = RecalculationService(db_session).recalculate(invoice.id, today=TODAY)
        db_session.commit()

        assert result.status == InvoiceStatus.OVERDUE.value

    def test_missing_invoice(self, db_session):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            RecalculationService(db_session).recalculate(uuid4())
