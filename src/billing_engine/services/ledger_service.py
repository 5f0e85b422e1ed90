"""Invoice ledger: totals, status transitions and the edit gate."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from billing_engine.calculators.line_builder import InvoiceLineBuilder
from billing_engine.calculators.types import InvoiceTotals
from billing_engine.config import get_settings
from billing_engine.errors import ConcurrentModificationError, NotFoundError, ValidationError
from billing_engine.models import Invoice, InvoiceFee, InvoiceLine, InvoiceManualLine
from billing_engine.models.base import utcnow
from billing_engine.services.state_machine import InvoiceStateMachine, InvoiceStatus

logger = logging.getLogger(__name__)

METADATA_FIELDS = {"invoice_number", "issue_date", "due_date"}


class InvoiceLedger:
    """Owns an invoice's composed totals and status.

    Every mutation of lines, manual lines, fees or discount must end with
    recompute_totals(), which re-reads the persisted children rather than
    trusting any caller-computed figure.

    Invoices are loaded for mutation with SELECT ... FOR UPDATE and carry
    an optimistic version column, so concurrent edits of one invoice
    serialize or fail with ConcurrentModificationError.
    """

    def __init__(self, session: AsyncSession, clamp_discount: bool | None = None):
        self.session = session
        if clamp_discount is None:
            clamp_discount = get_settings().clamp_discount
        self.clamp_discount = clamp_discount

    async def get_invoice(self, invoice_id: UUID, for_update: bool = False) -> Invoice:
        """Load an invoice with fresh column values."""
        stmt = (
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    async def get_editable_invoice(self, invoice_id: UUID) -> Invoice:
        """Lock an invoice for mutation; raises NotEditableError when closed."""
        invoice = await self.get_invoice(invoice_id, for_update=True)
        InvoiceStateMachine.ensure_editable(invoice)
        return invoice

    async def recompute_totals(self, invoice: Invoice | UUID) -> InvoiceTotals:
        """Resum subtotal and total from the persisted child collections."""
        if not isinstance(invoice, Invoice):
            invoice = await self.get_invoice(invoice, for_update=True)

        # Pending child inserts/updates/deletes must be visible to the reads below
        await self._flush(invoice.id)

        billed = await self.session.scalars(
            select(InvoiceLine.amount).where(InvoiceLine.invoice_id == invoice.id)
        )
        manual = await self.session.scalars(
            select(InvoiceManualLine.line_total).where(InvoiceManualLine.invoice_id == invoice.id)
        )
        fees = await self.session.scalars(
            select(InvoiceFee.fee_total).where(InvoiceFee.invoice_id == invoice.id)
        )

        totals = InvoiceLineBuilder.compose_totals(
            billed_amounts=billed.all(),
            manual_totals=manual.all(),
            fee_totals=fees.all(),
            discount=invoice.discount or Decimal("0"),
            clamp_discount=self.clamp_discount,
        )

        invoice.subtotal = totals.subtotal
        invoice.applied_discount = totals.discount_applied
        invoice.total = totals.total
        # Always touch the row so the version check runs even when totals are unchanged
        invoice.updated_at = utcnow()
        await self._flush(invoice.id)
        return totals

    async def transition(self, invoice_id: UUID, new_status: str) -> Invoice:
        """Move an invoice to a new status and resum in the same operation."""
        invoice = await self.get_invoice(invoice_id, for_update=True)
        from_status = invoice.status
        InvoiceStateMachine.validate_transition(from_status, new_status)

        await self.recompute_totals(invoice)
        invoice.status = InvoiceStatus(new_status).value
        invoice.updated_at = utcnow()
        await self._flush(invoice.id)

        logger.info(
            "Invoice %s moved from %s to %s (total %s)",
            invoice.id,
            from_status,
            invoice.status,
            invoice.total,
        )
        return invoice

    async def update_discount(
        self, invoice_id: UUID, discount: Decimal | int | float | str
    ) -> Invoice:
        """Set the discount and resum."""
        value = InvoiceLineBuilder.non_negative("discount", discount)
        invoice = await self.get_editable_invoice(invoice_id)
        invoice.discount = InvoiceLineBuilder.round_to_cents(value)
        await self.recompute_totals(invoice)
        return invoice

    async def update_notes(self, invoice_id: UUID, notes: str | None) -> Invoice:
        """Replace invoice notes; blank notes are stored as NULL."""
        invoice = await self.get_editable_invoice(invoice_id)
        invoice.notes = notes.strip() if notes and notes.strip() else None
        invoice.updated_at = utcnow()
        await self._flush(invoice.id)
        return invoice

    async def update_metadata(self, invoice_id: UUID, changes: dict[str, Any]) -> Invoice:
        """Update invoice_number, issue_date and/or due_date."""
        unknown = set(changes) - METADATA_FIELDS
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), "is not an invoice metadata field")

        invoice = await self.get_editable_invoice(invoice_id)

        if "invoice_number" in changes:
            number = changes["invoice_number"]
            invoice.invoice_number = number.strip() if number and number.strip() else None

        issue_date: date | None = changes.get("issue_date", invoice.issue_date)
        due_date: date | None = changes.get("due_date", invoice.due_date)
        if issue_date is not None and due_date is not None and due_date < issue_date:
            raise ValidationError("due_date", "must not be before issue_date")
        invoice.issue_date = issue_date
        invoice.due_date = due_date

        invoice.updated_at = utcnow()
        await self._flush(invoice.id)
        return invoice

    async def update_line_hours(
        self,
        invoice_id: UUID,
        line_id: UUID,
        hours: Decimal | int | float | str,
    ) -> InvoiceLine:
        """Correct a billed line's hours at its snapshotted rate, then resum."""
        value = InvoiceLineBuilder.non_negative("hours", hours)
        invoice = await self.get_editable_invoice(invoice_id)
        line = await self._get_line(invoice_id, line_id)

        line.hours = value
        line.amount = InvoiceLineBuilder.line_amount(value, line.rate_snapshot)
        await self.recompute_totals(invoice)
        return line

    async def remove_line(self, invoice_id: UUID, line_id: UUID) -> None:
        """Remove a billed line and resum.

        The line's time entries stay linked to this invoice and will not be
        billed again.
        """
        invoice = await self.get_editable_invoice(invoice_id)
        line = await self._get_line(invoice_id, line_id)
        await self.session.delete(line)
        await self.recompute_totals(invoice)

    async def _get_line(self, invoice_id: UUID, line_id: UUID) -> InvoiceLine:
        result = await self.session.execute(
            select(InvoiceLine).where(
                InvoiceLine.id == line_id,
                InvoiceLine.invoice_id == invoice_id,
            )
        )
        line = result.scalar_one_or_none()
        if line is None:
            raise NotFoundError("InvoiceLine", line_id)
        return line

    async def _flush(self, invoice_id: UUID) -> None:
        try:
            await self.session.flush()
        except StaleDataError as exc:
            raise ConcurrentModificationError(invoice_id) from exc
