"""Error kinds raised by the billing engine."""

from __future__ import annotations

from uuid import UUID


class BillingError(Exception):
    """Base class for all billing engine errors."""


class NotFoundError(BillingError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity_type: str, entity_id: UUID | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class ValidationError(BillingError):
    """Raised when an input value is out of range or missing."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class NotEditableError(BillingError):
    """Raised when mutating an invoice whose status forbids edits."""

    def __init__(self, invoice_id: UUID, status: str):
        self.invoice_id = invoice_id
        self.status = status
        super().__init__(f"Invoice {invoice_id} is '{status}' and can no longer be edited")


class InvalidTransitionError(BillingError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class DuplicateBillingError(BillingError):
    """Raised when a time entry is already linked to an invoice."""

    def __init__(self, time_entry_ids: list[UUID]):
        self.time_entry_ids = time_entry_ids
        super().__init__(
            f"{len(time_entry_ids)} time entr{'y is' if len(time_entry_ids) == 1 else 'ies are'} "
            "already linked to an invoice"
        )


class RoleInUseError(BillingError):
    """Raised when deleting a project role that assignments still reference."""

    def __init__(self, role_id: UUID, assignment_count: int):
        self.role_id = role_id
        self.assignment_count = assignment_count
        super().__init__(
            f"Role {role_id} is used by {assignment_count} assignment(s) and cannot be deleted"
        )


class ConcurrentModificationError(BillingError):
    """Raised when another transaction changed the invoice first."""

    def __init__(self, invoice_id: UUID):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id} was modified concurrently; retry the operation")
