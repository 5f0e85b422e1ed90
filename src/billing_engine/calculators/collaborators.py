"""Read-only interfaces to the employee directory and project store.

The engine depends on these protocols only; the SQL-backed defaults read
the local `employees` and `projects` tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billing_engine.models import Employee, Project


@dataclass(frozen=True)
class EmployeeInfo:
    """What the engine needs to know about an employee."""

    id: UUID
    name: str


@dataclass(frozen=True)
class ProjectInfo:
    """What the engine needs to know about a project."""

    id: UUID
    client_id: UUID | None
    is_active: bool
    is_internal: bool


class EmployeeDirectory(Protocol):
    """Identity provider lookups."""

    async def get_employee(self, employee_id: UUID) -> EmployeeInfo | None:
        """Return the employee, or None when unknown."""
        ...

    async def get_employees(self, employee_ids: list[UUID]) -> dict[UUID, EmployeeInfo]:
        """Return known employees keyed by id; unknown ids are omitted."""
        ...


class ProjectStore(Protocol):
    """Project/client store lookups."""

    async def get_project(self, project_id: UUID) -> ProjectInfo | None:
        """Return the project, or None when unknown."""
        ...


class SqlEmployeeDirectory:
    """EmployeeDirectory backed by the employees table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_employee(self, employee_id: UUID) -> EmployeeInfo | None:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            return None
        return EmployeeInfo(id=employee.id, name=employee.name)

    async def get_employees(self, employee_ids: list[UUID]) -> dict[UUID, EmployeeInfo]:
        if not employee_ids:
            return {}
        result = await self.session.execute(
            select(Employee).where(Employee.id.in_(employee_ids))
        )
        return {
            employee.id: EmployeeInfo(id=employee.id, name=employee.name)
            for employee in result.scalars()
        }


class SqlProjectStore:
    """ProjectStore backed by the projects table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_project(self, project_id: UUID) -> ProjectInfo | None:
        project = await self.session.get(Project, project_id)
        if project is None:
            return None
        return ProjectInfo(
            id=project.id,
            client_id=project.client_id,
            is_active=project.is_active,
            is_internal=project.is_internal,
        )
