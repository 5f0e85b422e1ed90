"""Type definitions for the billing calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class ResolvedRate:
    """Hourly rate that applies right now, with the role it came from."""

    rate: Decimal
    role_name: str | None = None

    @classmethod
    def zero(cls) -> ResolvedRate:
        """Fallback for unassigned employees or missing roles."""
        return cls(rate=Decimal("0"), role_name=None)


@dataclass
class InvoiceLineDraft:
    """A billed-time line candidate before persistence."""

    employee_id: UUID
    employee_name: str
    role_name: str | None
    hours: Decimal
    rate_snapshot: Decimal
    amount: Decimal
    time_entry_ids: list[UUID] = field(default_factory=list)


@dataclass
class InvoiceDraft:
    """Result of aggregating a project's unbilled, billable hours."""

    project_id: UUID
    lines: list[InvoiceLineDraft] = field(default_factory=list)

    @property
    def linked_entry_ids(self) -> list[UUID]:
        """Every time entry claimed by this draft, across all lines."""
        return [entry_id for line in self.lines for entry_id in line.time_entry_ids]

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def billed_total(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class InvoiceTotals:
    """Composed totals of an invoice."""

    billed: Decimal
    manual: Decimal
    fees: Decimal
    subtotal: Decimal
    discount_applied: Decimal
    total: Decimal
