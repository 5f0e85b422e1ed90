"""Aggregation of unbilled, billable time entries into invoice line drafts."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.calculators.collaborators import EmployeeDirectory, SqlEmployeeDirectory
from billing_engine.calculators.line_builder import InvoiceLineBuilder
from billing_engine.calculators.rate_resolver import RateResolver
from billing_engine.calculators.types import InvoiceDraft, InvoiceLineDraft
from billing_engine.models import InvoiceTimeEntry, TimeEntry, TimeEntryStatus

UNKNOWN_EMPLOYEE_NAME = "Unknown"


class TimeEntryAggregator:
    """Builds invoice line drafts from a project's billable hours.

    Eligible entries are billable, in normal status and not linked to any
    invoice on any project. Hours are summed per employee and priced with
    the rate resolved at aggregation time.
    """

    def __init__(
        self,
        session: AsyncSession,
        rate_resolver: RateResolver | None = None,
        directory: EmployeeDirectory | None = None,
    ):
        self.session = session
        self.rate_resolver = rate_resolver or RateResolver(session)
        self.directory = directory or SqlEmployeeDirectory(session)

    async def get_eligible_entries(self, project_id: UUID) -> list[TimeEntry]:
        """Billable, normal-status entries never linked to an invoice."""
        already_linked = exists().where(InvoiceTimeEntry.time_entry_id == TimeEntry.id)
        result = await self.session.execute(
            select(TimeEntry)
            .where(
                TimeEntry.project_id == project_id,
                TimeEntry.billable.is_(True),
                TimeEntry.status == TimeEntryStatus.NORMAL.value,
                ~already_linked,
            )
            .order_by(TimeEntry.employee_id, TimeEntry.date, TimeEntry.id)
        )
        return list(result.scalars().all())

    async def build_invoice_draft(self, project_id: UUID) -> InvoiceDraft:
        """Group eligible entries by employee and price each group.

        An empty draft is a valid result.
        """
        entries = await self.get_eligible_entries(project_id)

        hours_by_employee: dict[UUID, Decimal] = {}
        entry_ids_by_employee: dict[UUID, list[UUID]] = {}
        for entry in entries:
            hours_by_employee[entry.employee_id] = (
                hours_by_employee.get(entry.employee_id, Decimal("0")) + entry.hours
            )
            entry_ids_by_employee.setdefault(entry.employee_id, []).append(entry.id)

        employee_ids = list(hours_by_employee)
        rates = await self.rate_resolver.resolve_rates(employee_ids, project_id)
        employees = await self.directory.get_employees(employee_ids)

        draft = InvoiceDraft(project_id=project_id)
        for employee_id in employee_ids:
            hours = hours_by_employee[employee_id]
            resolved = rates[employee_id]
            employee = employees.get(employee_id)
            draft.lines.append(
                InvoiceLineDraft(
                    employee_id=employee_id,
                    employee_name=employee.name if employee else UNKNOWN_EMPLOYEE_NAME,
                    role_name=resolved.role_name,
                    hours=hours,
                    rate_snapshot=resolved.rate,
                    amount=InvoiceLineBuilder.line_amount(hours, resolved.rate),
                    time_entry_ids=entry_ids_by_employee[employee_id],
                )
            )

        draft.lines.sort(key=lambda line: (line.employee_name, str(line.employee_id)))
        return draft
