"""Tests for time entry aggregation."""

from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.calculators.aggregator import UNKNOWN_EMPLOYEE_NAME, TimeEntryAggregator
from billing_engine.calculators.collaborators import EmployeeInfo, SqlEmployeeDirectory
from billing_engine.models import Invoice, InvoiceTimeEntry, Project


class PartialDirectory:
    """Employee directory that only knows some employees."""

    def __init__(self, known: dict[UUID, str]):
        self.known = known

    async def get_employee(self, employee_id: UUID) -> EmployeeInfo | None:
        name = self.known.get(employee_id)
        return EmployeeInfo(id=employee_id, name=name) if name else None

    async def get_employees(self, employee_ids: list[UUID]) -> dict[UUID, EmployeeInfo]:
        return {
            employee_id: EmployeeInfo(id=employee_id, name=self.known[employee_id])
            for employee_id in employee_ids
            if employee_id in self.known
        }


class TestTimeEntryAggregator:
    """Test grouping, pricing and eligibility."""

    @pytest.mark.asyncio
    async def test_sums_hours_per_employee(
        self, session: AsyncSession, test_project: Project, test_employees, test_time_entries
    ):
        """Alice logs 5h and 3h at $50/h: one line of 8h and $400."""
        draft = await TimeEntryAggregator(session).build_invoice_draft(test_project.id)

        assert len(draft.lines) == 2
        alice, bob = draft.lines

        assert alice.employee_id == test_employees["Alice"].id
        assert alice.employee_name == "Alice Example"
        assert alice.role_name == "Senior Developer"
        assert alice.hours == Decimal("8")
        assert alice.rate_snapshot == Decimal("50.00")
        assert alice.amount == Decimal("400.00")
        assert set(alice.time_entry_ids) == {
            test_time_entries["alice_mon"].id,
            test_time_entries["alice_tue"].id,
        }

        assert bob.hours == Decimal("2")
        assert bob.amount == Decimal("80.00")
        assert draft.billed_total == Decimal("480.00")

    @pytest.mark.asyncio
    async def test_excludes_non_billable_and_on_hold(
        self, session: AsyncSession, test_project: Project, test_time_entries
    ):
        entries = await TimeEntryAggregator(session).get_eligible_entries(test_project.id)
        ids = {e.id for e in entries}

        assert test_time_entries["bob_on_hold"].id not in ids
        assert test_time_entries["alice_non_billable"].id not in ids
        assert len(ids) == 3

    @pytest.mark.asyncio
    async def test_excludes_entries_linked_anywhere(
        self, session: AsyncSession, test_project: Project, test_time_entries
    ):
        """An entry linked to any invoice, even on another project, is never eligible."""
        other_project = Project(id=uuid4(), name="Other", is_active=True, is_internal=False)
        session.add(other_project)
        await session.flush()
        other_invoice = Invoice(project_id=other_project.id)
        session.add(other_invoice)
        await session.flush()
        session.add(
            InvoiceTimeEntry(
                invoice_id=other_invoice.id, time_entry_id=test_time_entries["alice_mon"].id
            )
        )
        await session.commit()

        draft = await TimeEntryAggregator(session).build_invoice_draft(test_project.id)
        alice = next(line for line in draft.lines if line.employee_name == "Alice Example")

        assert alice.hours == Decimal("3")
        assert alice.amount == Decimal("150.00")
        assert test_time_entries["alice_mon"].id not in draft.linked_entry_ids

    @pytest.mark.asyncio
    async def test_unassigned_employee_bills_at_zero(
        self, session: AsyncSession, test_project: Project, test_employees, test_assignments,
        add_entries,
    ):
        await add_entries((test_employees["Carol"], test_project, 7, "6"))

        draft = await TimeEntryAggregator(session).build_invoice_draft(test_project.id)

        (carol,) = draft.lines
        assert carol.hours == Decimal("6")
        assert carol.rate_snapshot == Decimal("0")
        assert carol.amount == Decimal("0.00")
        assert carol.role_name is None

    @pytest.mark.asyncio
    async def test_unknown_employee_name(
        self, session: AsyncSession, test_project: Project, test_employees, test_time_entries
    ):
        directory = PartialDirectory({test_employees["Alice"].id: "Alice Example"})

        draft = await TimeEntryAggregator(session, directory=directory).build_invoice_draft(
            test_project.id
        )

        names = [line.employee_name for line in draft.lines]
        assert names == ["Alice Example", UNKNOWN_EMPLOYEE_NAME]

    @pytest.mark.asyncio
    async def test_empty_draft(self, session: AsyncSession, test_project: Project):
        draft = await TimeEntryAggregator(session).build_invoice_draft(test_project.id)

        assert draft.is_empty
        assert draft.linked_entry_ids == []
        assert draft.billed_total == Decimal("0")


class TestSqlEmployeeDirectory:
    """Test the table-backed employee directory."""

    @pytest.mark.asyncio
    async def test_get_employee(self, session: AsyncSession, test_employees):
        directory = SqlEmployeeDirectory(session)
        alice = test_employees["Alice"]

        assert await directory.get_employee(alice.id) == EmployeeInfo(id=alice.id, name="Alice Example")
        assert await directory.get_employee(uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_employees_omits_unknown(self, session: AsyncSession, test_employees):
        directory = SqlEmployeeDirectory(session)
        ids = [test_employees["Bob"].id, uuid4()]

        found = await directory.get_employees(ids)

        assert list(found) == [test_employees["Bob"].id]
