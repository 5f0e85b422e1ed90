"""Invoice state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from billing_engine.errors import InvalidTransitionError, NotEditableError

if TYPE_CHECKING:
    from billing_engine.models import Invoice


class InvoiceStatus(str, Enum):
    """Invoice status values."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"
    VOIDED = "voided"


class InvoiceStateMachine:
    """State machine for invoice status transitions.

    Allowed transitions:
    - draft → sent
    - draft → cancelled
    - sent → paid
    - sent → voided

    paid, cancelled and voided are terminal.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        InvoiceStatus.DRAFT: [InvoiceStatus.SENT, InvoiceStatus.CANCELLED],
        InvoiceStatus.SENT: [InvoiceStatus.PAID, InvoiceStatus.VOIDED],
        InvoiceStatus.PAID: [],
        InvoiceStatus.CANCELLED: [],
        InvoiceStatus.VOIDED: [],
    }

    # Statuses where lines, charges, discount, notes and metadata can change
    EDITABLE = {
        InvoiceStatus.DRAFT,
        InvoiceStatus.SENT,
    }

    # Statuses counted as unpaid for batch recalculation
    UNPAID = EDITABLE

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if to_status not in {s.value for s in InvoiceStatus}:
            raise InvalidTransitionError(from_status, to_status, "unknown status")
        if from_status == to_status:
            raise InvalidTransitionError(from_status, to_status, "invoice is already in this status")
        if not cls.can_transition(from_status, to_status):
            reason = "status is terminal" if cls.is_terminal(from_status) else None
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def is_editable(cls, status: str) -> bool:
        """Check if invoice children and metadata can be modified."""
        return status in cls.EDITABLE

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Check if no further transitions are possible."""
        return not cls.VALID_TRANSITIONS.get(status)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return [str(s.value) for s in cls.VALID_TRANSITIONS.get(current_status, [])]

    @classmethod
    def ensure_editable(cls, invoice: Invoice) -> None:
        """Raise NotEditableError unless the invoice is draft or sent."""
        if not cls.is_editable(invoice.status):
            raise NotEditableError(invoice.id, invoice.status)
