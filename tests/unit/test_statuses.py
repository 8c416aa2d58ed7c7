"""Unit tests for document status transition tables."""

import pytest

from backoffice.business.errors import InvalidTransitionError
from backoffice.business.statuses import (
    INVOICE_TRANSITIONS,
    PURCHASE_ORDER_TRANSITIONS,
    QUOTE_TRANSITIONS,
    TIMESHEET_TRANSITIONS,
    InvoiceStatus,
    QuoteStatus,
    ensure_transition,
)


@pytest.mark.unit
class TestQuoteTransitions:

    @pytest.mark.parametrize("current,target", [
        ("draft", "sent"),
        ("draft", "accepted"),
        ("sent", "accepted"),
        ("sent", "expired"),
        ("accepted", "converted"),
    ])
    def test_allowed(self, current, target):
        ensure_transition("quote", QUOTE_TRANSITIONS, current, target)

    @pytest.mark.parametrize("current,target", [
        ("draft", "converted"),
        ("draft", "expired"),
        ("converted", "accepted"),
        ("rejected", "sent"),
        ("expired", "accepted"),
    ])
    def test_rejected(self, current, target):
        with pytest.raises(InvalidTransitionError):
            ensure_transition("quote", QUOTE_TRANSITIONS, current, target)

    def test_terminal_statuses_have_no_exits(self):
        for status in (QuoteStatus.REJECTED, QuoteStatus.EXPIRED, QuoteStatus.CONVERTED):
            assert QUOTE_TRANSITIONS[status] == frozenset()


@pytest.mark.unit
class TestInvoiceTransitions:

    def test_partial_payments_may_repeat(self):
        ensure_transition("invoice", INVOICE_TRANSITIONS, "partially_paid", "partially_paid")

    def test_overdue_can_still_be_paid(self):
        ensure_transition("invoice", INVOICE_TRANSITIONS, "overdue", "paid")

    def test_partially_paid_cannot_be_cancelled(self):
        with pytest.raises(InvalidTransitionError):
            ensure_transition("invoice", INVOICE_TRANSITIONS, "partially_paid", "cancelled")

    def test_paid_is_terminal(self):
        assert INVOICE_TRANSITIONS[InvoiceStatus.PAID] == frozenset()


@pytest.mark.unit
class TestOtherTransitions:

    def test_purchase_order_receipt_path(self):
        ensure_transition("purchase order", PURCHASE_ORDER_TRANSITIONS, "issued", "partially_received")
        ensure_transition("purchase order", PURCHASE_ORDER_TRANSITIONS, "partially_received", "received")

    def test_received_purchase_order_cannot_be_cancelled(self):
        with pytest.raises(InvalidTransitionError):
            ensure_transition("purchase order", PURCHASE_ORDER_TRANSITIONS, "received", "cancelled")

    def test_rejected_timesheet_returns_to_pending(self):
        ensure_transition("timesheet", TIMESHEET_TRANSITIONS, "rejected", "pending")

    def test_approved_timesheet_is_final(self):
        with pytest.raises(InvalidTransitionError):
            ensure_transition("timesheet", TIMESHEET_TRANSITIONS, "approved", "rejected")


@pytest.mark.unit
def test_invalid_transition_error_details():
    with pytest.raises(InvalidTransitionError) as exc_info:
        ensure_transition("quote", QUOTE_TRANSITIONS, "draft", "converted")

    error = exc_info.value
    assert error.status_code == 409
    assert error.code == "INVALID_STATUS_TRANSITION"
    assert error.context == {"current_status": "draft", "target_status": "converted"}
    assert "draft" in error.message and "converted" in error.message


@pytest.mark.unit
def test_unknown_current_status_is_rejected():
    with pytest.raises(InvalidTransitionError):
        ensure_transition("quote", QUOTE_TRANSITIONS, "archived", "sent")
