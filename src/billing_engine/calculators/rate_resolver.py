"""Hourly rate resolution from project assignments and roles."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.calculators.types import ResolvedRate
from billing_engine.models import ProjectAssignment, ProjectRole


def resolve_from_records(
    assignment: ProjectAssignment | None,
    role: ProjectRole | None,
) -> ResolvedRate:
    """Pure resolution over an assignment and the role it references.

    No assignment, no role on the assignment, or a role that is gone (or
    belongs to another project) all resolve to a zero rate. None of these
    are errors.
    """
    if assignment is None or assignment.role_id is None:
        return ResolvedRate.zero()
    if role is None or role.id != assignment.role_id or role.project_id != assignment.project_id:
        return ResolvedRate.zero()
    return ResolvedRate(rate=role.hourly_rate_usd, role_name=role.name)


class RateResolver:
    """Resolves the live hourly rate for an employee on a project.

    Always reads current assignment and role rows; nothing is cached.
    Callers decide whether to snapshot the result onto an invoice line.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve_rate(self, employee_id: UUID, project_id: UUID) -> ResolvedRate:
        """Resolve the rate for one employee on one project."""
        rates = await self.resolve_rates([employee_id], project_id)
        return rates[employee_id]

    async def resolve_rates(
        self,
        employee_ids: list[UUID],
        project_id: UUID,
    ) -> dict[UUID, ResolvedRate]:
        """Resolve rates for several employees on one project in two queries."""
        if not employee_ids:
            return {}

        result = await self.session.execute(
            select(ProjectAssignment).where(
                ProjectAssignment.project_id == project_id,
                ProjectAssignment.employee_id.in_(employee_ids),
            )
        )
        assignments = {a.employee_id: a for a in result.scalars()}

        role_ids = {a.role_id for a in assignments.values() if a.role_id is not None}
        roles: dict[UUID, ProjectRole] = {}
        if role_ids:
            # populate_existing so a rate changed in this session is seen
            role_result = await self.session.execute(
                select(ProjectRole)
                .where(ProjectRole.id.in_(role_ids))
                .execution_options(populate_existing=True)
            )
            roles = {r.id: r for r in role_result.scalars()}

        resolved: dict[UUID, ResolvedRate] = {}
        for employee_id in employee_ids:
            assignment = assignments.get(employee_id)
            role = roles.get(assignment.role_id) if assignment and assignment.role_id else None
            resolved[employee_id] = resolve_from_records(assignment, role)
        return resolved
