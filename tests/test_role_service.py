"""Tests for project roles and assignments."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.errors import NotFoundError, RoleInUseError, ValidationError
from billing_engine.models import Project
from billing_engine.services.invoice_service import InvoiceService
from billing_engine.services.ledger_service import InvoiceLedger
from billing_engine.services.role_service import ProjectRoleService


class TestProjectRoles:
    """Test role CRUD."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, session: AsyncSession, test_project: Project):
        service = ProjectRoleService(session)

        await service.create_role(test_project.id, "QA Engineer", "35.555")
        await service.create_role(test_project.id, " Architect ", 90)
        roles = await service.list_roles(test_project.id)

        assert [r.name for r in roles] == ["Architect", "QA Engineer"]
        assert roles[1].hourly_rate_usd == Decimal("35.56")

    @pytest.mark.asyncio
    async def test_create_on_unknown_project(self, session: AsyncSession):
        with pytest.raises(NotFoundError):
            await ProjectRoleService(session).create_role(uuid4(), "QA", 10)

    @pytest.mark.asyncio
    async def test_negative_rate_rejected(self, session: AsyncSession, test_project: Project):
        with pytest.raises(ValidationError):
            await ProjectRoleService(session).create_role(test_project.id, "QA", "-1")

    @pytest.mark.asyncio
    async def test_update_rate_leaves_invoices_alone(
        self,
        session: AsyncSession,
        test_project: Project,
        test_roles,
        test_time_entries,
    ):
        """A new live rate never rewrites existing snapshots."""
        ledger = InvoiceLedger(session, clamp_discount=True)
        invoice = await InvoiceService(session, ledger=ledger).create_invoice(test_project.id)
        await session.commit()

        role = await ProjectRoleService(session).update_role(
            test_roles["senior"].id, {"hourly_rate_usd": "75"}
        )
        await session.commit()

        assert role.hourly_rate_usd == Decimal("75.00")
        assert (await ledger.get_invoice(invoice.id)).total == Decimal("480.00")

    @pytest.mark.asyncio
    async def test_update_unknown_field(self, session: AsyncSession, test_roles):
        with pytest.raises(ValidationError):
            await ProjectRoleService(session).update_role(
                test_roles["senior"].id, {"project_id": uuid4()}
            )

    @pytest.mark.asyncio
    async def test_delete_role_in_use(self, session: AsyncSession, test_roles, test_assignments):
        with pytest.raises(RoleInUseError) as exc_info:
            await ProjectRoleService(session).delete_role(test_roles["senior"].id)

        assert exc_info.value.assignment_count == 1

    @pytest.mark.asyncio
    async def test_delete_unused_role(self, session: AsyncSession, test_project: Project):
        service = ProjectRoleService(session)
        role = await service.create_role(test_project.id, "Intern", 15)

        await service.delete_role(role.id)

        assert await service.list_roles(test_project.id) == []
        with pytest.raises(NotFoundError):
            await service.get_role(role.id)


class TestAssignments:
    """Test employee assignments."""

    @pytest.mark.asyncio
    async def test_assign_and_reassign(
        self, session: AsyncSession, test_project: Project, test_employees, test_roles
    ):
        service = ProjectRoleService(session)
        alice = test_employees["Alice"]
        manager_id = uuid4()

        first = await service.assign_employee(
            alice.id, test_project.id, test_roles["designer"].id, assigned_by=manager_id
        )
        second = await service.assign_employee(alice.id, test_project.id, test_roles["senior"].id)

        assert second.id == first.id
        assert second.role_id == test_roles["senior"].id
        assert second.assigned_by == manager_id

    @pytest.mark.asyncio
    async def test_role_from_other_project_rejected(
        self, session: AsyncSession, test_project: Project, test_employees
    ):
        other = Project(id=uuid4(), name="Other", is_active=True, is_internal=False)
        session.add(other)
        await session.flush()
        service = ProjectRoleService(session)
        foreign_role = await service.create_role(other.id, "Lead", 70)

        with pytest.raises(ValidationError) as exc_info:
            await service.assign_employee(test_employees["Alice"].id, test_project.id, foreign_role.id)

        assert exc_info.value.field == "role_id"

    @pytest.mark.asyncio
    async def test_assign_unknown_employee(self, session: AsyncSession, test_project: Project):
        with pytest.raises(NotFoundError):
            await ProjectRoleService(session).assign_employee(uuid4(), test_project.id)

    @pytest.mark.asyncio
    async def test_unassign(
        self, session: AsyncSession, test_project: Project, test_employees, test_assignments
    ):
        service = ProjectRoleService(session)
        bob = test_employees["Bob"]

        await service.unassign_employee(bob.id, test_project.id)

        assert await service.get_assignment(bob.id, test_project.id) is None
        with pytest.raises(NotFoundError):
            await service.unassign_employee(bob.id, test_project.id)
