"""Invoice service - creation from billable hours and read models."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from billing_engine.calculators.aggregator import TimeEntryAggregator
from billing_engine.calculators.collaborators import ProjectStore, SqlProjectStore
from billing_engine.errors import DuplicateBillingError, NotFoundError, ValidationError
from billing_engine.models import Invoice, InvoiceFee, InvoiceLine, InvoiceTimeEntry
from billing_engine.services.ledger_service import InvoiceLedger
from billing_engine.services.state_machine import InvoiceStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoiceSummary:
    """Portfolio-level invoice figures."""

    draft_count: int
    outstanding_total: Decimal
    collected_total: Decimal


class InvoiceService:
    """Service for invoice creation and lookups.

    Operations:
    - create_invoice: aggregate billable hours into a new draft invoice
    - link_time_entries: claim time entries for an invoice (once, ever)
    - get_invoice_detail / list_invoices / summarize: read models
    """

    def __init__(
        self,
        session: AsyncSession,
        ledger: InvoiceLedger | None = None,
        aggregator: TimeEntryAggregator | None = None,
        projects: ProjectStore | None = None,
    ):
        self.session = session
        self.ledger = ledger or InvoiceLedger(session)
        self.aggregator = aggregator or TimeEntryAggregator(session)
        self.projects = projects or SqlProjectStore(session)

    async def create_invoice(self, project_id: UUID, notes: str | None = None) -> Invoice:
        """Create a draft invoice from the project's unbilled billable hours.

        Runs inside the caller's unit of work: the invoice, its lines, the
        time entry links and the resummed totals commit together or not at
        all. A project with nothing to bill still gets an empty draft.
        """
        project = await self.projects.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        if not project.is_active:
            raise ValidationError("project_id", "project is inactive")
        if project.is_internal:
            raise ValidationError("project_id", "internal projects are not billable")

        invoice = Invoice(
            project_id=project_id,
            status=InvoiceStatus.DRAFT.value,
            notes=notes.strip() if notes and notes.strip() else None,
            subtotal=Decimal("0"),
            discount=Decimal("0"),
            applied_discount=Decimal("0"),
            total=Decimal("0"),
        )
        self.session.add(invoice)
        await self.session.flush()

        draft = await self.aggregator.build_invoice_draft(project_id)
        for line in draft.lines:
            self.session.add(
                InvoiceLine(
                    invoice_id=invoice.id,
                    employee_id=line.employee_id,
                    employee_name=line.employee_name,
                    role_name=line.role_name,
                    hours=line.hours,
                    rate_snapshot=line.rate_snapshot,
                    amount=line.amount,
                )
            )
        await self.link_time_entries(invoice.id, draft.linked_entry_ids)
        await self.ledger.recompute_totals(invoice)

        logger.info(
            "Created invoice %s for project %s with %d line(s) from %d time entries",
            invoice.id,
            project_id,
            len(draft.lines),
            len(draft.linked_entry_ids),
        )
        return invoice

    async def link_time_entries(self, invoice_id: UUID, time_entry_ids: list[UUID]) -> None:
        """Link time entries to an invoice.

        A time entry may be linked to at most one invoice across the whole
        system; any prior link raises DuplicateBillingError.
        """
        if not time_entry_ids:
            return

        result = await self.session.execute(
            select(InvoiceTimeEntry.time_entry_id).where(
                InvoiceTimeEntry.time_entry_id.in_(time_entry_ids)
            )
        )
        already_linked = list(result.scalars())
        if already_linked:
            raise DuplicateBillingError(already_linked)

        self.session.add_all(
            InvoiceTimeEntry(invoice_id=invoice_id, time_entry_id=entry_id)
            for entry_id in time_entry_ids
        )
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Lost a race with another invoice claiming the same entries
            raise DuplicateBillingError(list(time_entry_ids)) from exc

    async def get_invoice_detail(self, invoice_id: UUID) -> Invoice:
        """Load an invoice with lines, manual lines, fees and attachments."""
        result = await self.session.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .options(
                selectinload(Invoice.lines),
                selectinload(Invoice.manual_lines),
                selectinload(Invoice.fees).selectinload(InvoiceFee.attachments),
            )
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    async def get_linked_time_entry_ids(self, invoice_id: UUID) -> list[UUID]:
        """Time entries billed by an invoice."""
        result = await self.session.execute(
            select(InvoiceTimeEntry.time_entry_id).where(InvoiceTimeEntry.invoice_id == invoice_id)
        )
        return list(result.scalars())

    async def list_invoices(
        self,
        project_id: UUID | None = None,
        status: str | None = None,
    ) -> list[Invoice]:
        """List invoices, newest first, optionally filtered."""
        query = select(Invoice)
        if project_id is not None:
            query = query.where(Invoice.project_id == project_id)
        if status is not None:
            query = query.where(Invoice.status == status)
        query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def summarize(self) -> InvoiceSummary:
        """Draft count, outstanding (sent) and collected (paid) totals."""
        result = await self.session.execute(
            select(Invoice.status, func.count(Invoice.id)).group_by(Invoice.status)
        )
        counts = dict(result.tuples().all())

        totals = await self.session.execute(
            select(Invoice.status, Invoice.total).where(
                Invoice.status.in_([InvoiceStatus.SENT.value, InvoiceStatus.PAID.value])
            )
        )
        outstanding = Decimal("0")
        collected = Decimal("0")
        for status, total in totals.tuples():
            if status == InvoiceStatus.SENT.value:
                outstanding += total
            else:
                collected += total

        return InvoiceSummary(
            draft_count=counts.get(InvoiceStatus.DRAFT.value, 0),
            outstanding_total=outstanding,
            collected_total=collected,
        )
