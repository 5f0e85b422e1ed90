"""Manual people lines, flat fees and fee attachments."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.calculators.line_builder import InvoiceLineBuilder
from billing_engine.errors import NotFoundError, ValidationError
from billing_engine.models import InvoiceFee, InvoiceFeeAttachment, InvoiceManualLine
from billing_engine.services.ledger_service import InvoiceLedger

MANUAL_LINE_FIELDS = {"person_name", "hours", "rate_usd", "description"}
FEE_FIELDS = {"label", "quantity", "unit_price_usd", "description"}

Number = Decimal | int | float | str


def _clean_description(description: str | None) -> str | None:
    if description is None or not description.strip():
        return None
    return description.strip()


def _reject_unknown(changes: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(", ".join(sorted(unknown)), "cannot be updated")


class ManualChargeService:
    """CRUD for charges not derived from time entries.

    Every mutation is gated by the invoice's editability and followed by a
    ledger resum. line_total and fee_total are always recomputed here.
    """

    def __init__(self, session: AsyncSession, ledger: InvoiceLedger | None = None):
        self.session = session
        self.ledger = ledger or InvoiceLedger(session)

    # ----- manual people lines -----

    async def add_manual_line(
        self,
        invoice_id: UUID,
        person_name: str,
        hours: Number,
        rate_usd: Number,
        description: str | None = None,
    ) -> InvoiceManualLine:
        """Add a manual people line and resum."""
        name = InvoiceLineBuilder.required_text("person_name", person_name)
        hours_value = InvoiceLineBuilder.non_negative("hours", hours)
        rate_value = InvoiceLineBuilder.non_negative("rate_usd", rate_usd)

        invoice = await self.ledger.get_editable_invoice(invoice_id)
        line = InvoiceManualLine(
            invoice_id=invoice.id,
            person_name=name,
            hours=hours_value,
            rate_usd=rate_value,
            description=_clean_description(description),
            line_total=InvoiceLineBuilder.line_amount(hours_value, rate_value),
        )
        self.session.add(line)
        await self.ledger.recompute_totals(invoice)
        return line

    async def update_manual_line(
        self,
        invoice_id: UUID,
        line_id: UUID,
        changes: dict[str, Any],
    ) -> InvoiceManualLine:
        """Apply a partial update to a manual line and resum."""
        _reject_unknown(changes, MANUAL_LINE_FIELDS)
        invoice = await self.ledger.get_editable_invoice(invoice_id)
        line = await self._get_manual_line(invoice_id, line_id)

        if "person_name" in changes:
            line.person_name = InvoiceLineBuilder.required_text("person_name", changes["person_name"])
        if "hours" in changes:
            line.hours = InvoiceLineBuilder.non_negative("hours", changes["hours"])
        if "rate_usd" in changes:
            line.rate_usd = InvoiceLineBuilder.non_negative("rate_usd", changes["rate_usd"])
        if "description" in changes:
            line.description = _clean_description(changes["description"])

        line.line_total = InvoiceLineBuilder.line_amount(line.hours, line.rate_usd)
        await self.ledger.recompute_totals(invoice)
        return line

    async def delete_manual_line(self, invoice_id: UUID, line_id: UUID) -> None:
        """Remove a manual line and resum."""
        invoice = await self.ledger.get_editable_invoice(invoice_id)
        line = await self._get_manual_line(invoice_id, line_id)
        await self.session.delete(line)
        await self.ledger.recompute_totals(invoice)

    # ----- fees -----

    async def add_fee(
        self,
        invoice_id: UUID,
        label: str,
        quantity: Number,
        unit_price_usd: Number,
        description: str | None = None,
    ) -> InvoiceFee:
        """Add a flat fee and resum."""
        label_value = InvoiceLineBuilder.required_text("label", label)
        quantity_value = InvoiceLineBuilder.non_negative("quantity", quantity)
        price_value = InvoiceLineBuilder.non_negative("unit_price_usd", unit_price_usd)

        invoice = await self.ledger.get_editable_invoice(invoice_id)
        fee = InvoiceFee(
            invoice_id=invoice.id,
            label=label_value,
            quantity=quantity_value,
            unit_price_usd=price_value,
            description=_clean_description(description),
            fee_total=InvoiceLineBuilder.fee_total(quantity_value, price_value),
        )
        self.session.add(fee)
        await self.ledger.recompute_totals(invoice)
        return fee

    async def update_fee(
        self,
        invoice_id: UUID,
        fee_id: UUID,
        changes: dict[str, Any],
    ) -> InvoiceFee:
        """Apply a partial update to a fee and resum."""
        _reject_unknown(changes, FEE_FIELDS)
        invoice = await self.ledger.get_editable_invoice(invoice_id)
        fee = await self._get_fee(invoice_id, fee_id)

        if "label" in changes:
            fee.label = InvoiceLineBuilder.required_text("label", changes["label"])
        if "quantity" in changes:
            fee.quantity = InvoiceLineBuilder.non_negative("quantity", changes["quantity"])
        if "unit_price_usd" in changes:
            fee.unit_price_usd = InvoiceLineBuilder.non_negative(
                "unit_price_usd", changes["unit_price_usd"]
            )
        if "description" in changes:
            fee.description = _clean_description(changes["description"])

        fee.fee_total = InvoiceLineBuilder.fee_total(fee.quantity, fee.unit_price_usd)
        await self.ledger.recompute_totals(invoice)
        return fee

    async def delete_fee(self, invoice_id: UUID, fee_id: UUID) -> None:
        """Remove a fee with its attachment records and resum."""
        invoice = await self.ledger.get_editable_invoice(invoice_id)
        fee = await self._get_fee(invoice_id, fee_id)
        await self.session.execute(
            delete(InvoiceFeeAttachment).where(InvoiceFeeAttachment.fee_id == fee.id)
        )
        await self.session.delete(fee)
        await self.ledger.recompute_totals(invoice)

    # ----- fee attachments -----

    async def add_fee_attachment(
        self,
        invoice_id: UUID,
        fee_id: UUID,
        file_name: str,
        file_url: str,
        file_size: int = 0,
    ) -> InvoiceFeeAttachment:
        """Record a file reference on a fee. Totals are unaffected."""
        name = InvoiceLineBuilder.required_text("file_name", file_name)
        url = InvoiceLineBuilder.required_text("file_url", file_url)
        if file_size < 0:
            raise ValidationError("file_size", "must not be negative")

        await self.ledger.get_editable_invoice(invoice_id)
        fee = await self._get_fee(invoice_id, fee_id)
        attachment = InvoiceFeeAttachment(
            fee_id=fee.id, file_name=name, file_url=url, file_size=file_size
        )
        self.session.add(attachment)
        await self.session.flush()
        return attachment

    async def list_fee_attachments(self, invoice_id: UUID, fee_id: UUID) -> list[InvoiceFeeAttachment]:
        """Attachment records of a fee, oldest first."""
        fee = await self._get_fee(invoice_id, fee_id)
        result = await self.session.execute(
            select(InvoiceFeeAttachment)
            .where(InvoiceFeeAttachment.fee_id == fee.id)
            .order_by(InvoiceFeeAttachment.created_at)
        )
        return list(result.scalars().all())

    async def delete_fee_attachment(
        self, invoice_id: UUID, fee_id: UUID, attachment_id: UUID
    ) -> InvoiceFeeAttachment:
        """Remove an attachment record; returns it so the caller can drop the blob."""
        await self.ledger.get_editable_invoice(invoice_id)
        fee = await self._get_fee(invoice_id, fee_id)
        result = await self.session.execute(
            select(InvoiceFeeAttachment).where(
                InvoiceFeeAttachment.id == attachment_id,
                InvoiceFeeAttachment.fee_id == fee.id,
            )
        )
        attachment = result.scalar_one_or_none()
        if attachment is None:
            raise NotFoundError("InvoiceFeeAttachment", attachment_id)
        await self.session.delete(attachment)
        await self.session.flush()
        return attachment

    async def _get_manual_line(self, invoice_id: UUID, line_id: UUID) -> InvoiceManualLine:
        result = await self.session.execute(
            select(InvoiceManualLine).where(
                InvoiceManualLine.id == line_id,
                InvoiceManualLine.invoice_id == invoice_id,
            )
        )
        line = result.scalar_one_or_none()
        if line is None:
            raise NotFoundError("InvoiceManualLine", line_id)
        return line

    async def _get_fee(self, invoice_id: UUID, fee_id: UUID) -> InvoiceFee:
        result = await self.session.execute(
            select(InvoiceFee).where(
                InvoiceFee.id == fee_id,
                InvoiceFee.invoice_id == invoice_id,
            )
        )
        fee = result.scalar_one_or_none()
        if fee is None:
            raise NotFoundError("InvoiceFee", fee_id)
        return fee
