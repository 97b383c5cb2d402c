"""Tests for the invoice status state machine."""

import pytest

from ledger.core.errors import InvalidStatusTransitionError
from ledger.models.invoice import InvoiceStatus
from ledger.services.invoice_lifecycle import (
    ALLOWED_TRANSITIONS,
    can_transition,
    ensure_transition,
    is_terminal,
)


class TestTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("draft", "sent"),
            ("draft", "paid"),
            ("sent", "overdue"),
            ("overdue", "paid"),
            ("paid", "partial"),
            ("partial", "void"),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("sent", "draft"),
            ("paid", "sent"),
            ("paid", "overdue"),
            ("void", "draft"),
            ("cancelled", "paid"),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            ensure_transition(current, target)
        assert exc_info.value.detail == {"current_status": current, "target_status": target}

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(InvoiceStatus)

    def test_terminal(self):
        assert is_terminal(InvoiceStatus.VOID)
        assert is_terminal("cancelled")
        assert not is_terminal("paid")
