"""Project billing roles and employee assignments."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.calculators.line_builder import InvoiceLineBuilder
from billing_engine.errors import NotFoundError, RoleInUseError, ValidationError
from billing_engine.models import Employee, Project, ProjectAssignment, ProjectRole

logger = logging.getLogger(__name__)

ROLE_FIELDS = {"name", "hourly_rate_usd"}


class ProjectRoleService:
    """Manages the live rates that invoice lines snapshot.

    Changing a role rate never touches existing invoices; recalculation
    pulls the new rate in explicitly.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_roles(self, project_id: UUID) -> list[ProjectRole]:
        """Roles of a project ordered by name."""
        result = await self.session.execute(
            select(ProjectRole)
            .where(ProjectRole.project_id == project_id)
            .order_by(ProjectRole.name)
        )
        return list(result.scalars().all())

    async def get_role(self, role_id: UUID) -> ProjectRole:
        role = await self.session.get(ProjectRole, role_id)
        if role is None:
            raise NotFoundError("ProjectRole", role_id)
        return role

    async def create_role(
        self,
        project_id: UUID,
        name: str,
        hourly_rate_usd: Decimal | int | float | str,
    ) -> ProjectRole:
        """Create a billable role on a project."""
        if await self.session.get(Project, project_id) is None:
            raise NotFoundError("Project", project_id)
        role = ProjectRole(
            project_id=project_id,
            name=InvoiceLineBuilder.required_text("name", name),
            hourly_rate_usd=InvoiceLineBuilder.round_to_cents(
                InvoiceLineBuilder.non_negative("hourly_rate_usd", hourly_rate_usd)
            ),
        )
        self.session.add(role)
        await self.session.flush()
        return role

    async def update_role(self, role_id: UUID, changes: dict[str, Any]) -> ProjectRole:
        """Rename a role and/or change its live rate."""
        unknown = set(changes) - ROLE_FIELDS
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), "cannot be updated")

        role = await self.get_role(role_id)
        if "name" in changes:
            role.name = InvoiceLineBuilder.required_text("name", changes["name"])
        if "hourly_rate_usd" in changes:
            previous = role.hourly_rate_usd
            role.hourly_rate_usd = InvoiceLineBuilder.round_to_cents(
                InvoiceLineBuilder.non_negative("hourly_rate_usd", changes["hourly_rate_usd"])
            )
            if role.hourly_rate_usd != previous:
                logger.info(
                    "Role %s rate changed from %s to %s", role.id, previous, role.hourly_rate_usd
                )
        await self.session.flush()
        return role

    async def delete_role(self, role_id: UUID) -> None:
        """Delete a role no assignment references."""
        role = await self.get_role(role_id)
        in_use = await self.session.scalar(
            select(func.count(ProjectAssignment.id)).where(ProjectAssignment.role_id == role.id)
        )
        if in_use:
            raise RoleInUseError(role.id, in_use)
        await self.session.delete(role)
        await self.session.flush()

    async def get_assignment(self, employee_id: UUID, project_id: UUID) -> ProjectAssignment | None:
        result = await self.session.execute(
            select(ProjectAssignment).where(
                ProjectAssignment.employee_id == employee_id,
                ProjectAssignment.project_id == project_id,
            )
        )
        return result.scalar_one_or_none()

    async def assign_employee(
        self,
        employee_id: UUID,
        project_id: UUID,
        role_id: UUID | None = None,
        assigned_by: UUID | None = None,
    ) -> ProjectAssignment:
        """Create or update the single assignment for (employee, project)."""
        if await self.session.get(Employee, employee_id) is None:
            raise NotFoundError("Employee", employee_id)
        if await self.session.get(Project, project_id) is None:
            raise NotFoundError("Project", project_id)
        if role_id is not None:
            role = await self.get_role(role_id)
            if role.project_id != project_id:
                raise ValidationError("role_id", "role belongs to a different project")

        assignment = await self.get_assignment(employee_id, project_id)
        if assignment is None:
            assignment = ProjectAssignment(
                employee_id=employee_id,
                project_id=project_id,
                role_id=role_id,
                assigned_by=assigned_by,
            )
            self.session.add(assignment)
        else:
            assignment.role_id = role_id
            if assigned_by is not None:
                assignment.assigned_by = assigned_by
        await self.session.flush()
        return assignment

    async def unassign_employee(self, employee_id: UUID, project_id: UUID) -> None:
        """Remove an employee from a project."""
        assignment = await self.get_assignment(employee_id, project_id)
        if assignment is None:
            raise NotFoundError("ProjectAssignment", f"{employee_id}/{project_id}")
        await self.session.delete(assignment)
        await self.session.flush()
