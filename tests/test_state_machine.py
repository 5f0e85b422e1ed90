"""Tests for invoice state machine."""

from uuid import uuid4

import pytest

from billing_engine.errors import InvalidTransitionError, NotEditableError
from billing_engine.models import Invoice
from billing_engine.services.state_machine import InvoiceStateMachine, InvoiceStatus


class TestInvoiceStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        assert InvoiceStateMachine.can_transition("draft", "sent") is True
        assert InvoiceStateMachine.can_transition("draft", "cancelled") is True
        assert InvoiceStateMachine.can_transition("sent", "paid") is True
        assert InvoiceStateMachine.can_transition("sent", "voided") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip sent
        assert InvoiceStateMachine.can_transition("draft", "paid") is False
        assert InvoiceStateMachine.can_transition("draft", "voided") is False

        # Can't go backwards
        assert InvoiceStateMachine.can_transition("sent", "draft") is False
        assert InvoiceStateMachine.can_transition("sent", "cancelled") is False

        # Terminal states
        for terminal in ("paid", "cancelled", "voided"):
            for target in InvoiceStatus:
                assert InvoiceStateMachine.can_transition(terminal, target.value) is False

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            InvoiceStateMachine.validate_transition("draft", "paid")

        assert exc_info.value.from_status == "draft"
        assert exc_info.value.to_status == "paid"

    def test_validate_transition_terminal_reason(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            InvoiceStateMachine.validate_transition("paid", "sent")

        assert exc_info.value.reason == "status is terminal"

    def test_validate_transition_unknown_status(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            InvoiceStateMachine.validate_transition("draft", "archived")

        assert exc_info.value.reason == "unknown status"

    def test_validate_transition_same_status(self):
        with pytest.raises(InvalidTransitionError):
            InvoiceStateMachine.validate_transition("sent", "sent")

    def test_is_editable(self):
        """Only draft and sent invoices can be edited."""
        assert InvoiceStateMachine.is_editable("draft") is True
        assert InvoiceStateMachine.is_editable("sent") is True
        assert InvoiceStateMachine.is_editable("paid") is False
        assert InvoiceStateMachine.is_editable("cancelled") is False
        assert InvoiceStateMachine.is_editable("voided") is False

    def test_get_next_statuses(self):
        assert InvoiceStateMachine.get_next_statuses("draft") == ["sent", "cancelled"]
        assert InvoiceStateMachine.get_next_statuses("sent") == ["paid", "voided"]
        assert InvoiceStateMachine.get_next_statuses("paid") == []

    def test_ensure_editable(self):
        invoice = Invoice(id=uuid4(), project_id=uuid4(), status="voided")

        with pytest.raises(NotEditableError) as exc_info:
            InvoiceStateMachine.ensure_editable(invoice)

        assert exc_info.value.status == "voided"

        invoice.status = "sent"
        InvoiceStateMachine.ensure_editable(invoice)
