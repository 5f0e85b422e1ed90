"""Pytest fixtures for billing engine tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from billing_engine.database import create_all, create_session_factory
from billing_engine.models import (
    Employee,
    Project,
    ProjectAssignment,
    ProjectRole,
    TimeEntry,
)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Create a fresh file-backed SQLite database per test.

    A file (rather than :memory:) lets batch jobs open their own sessions
    against the same data.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'billing.db'}", echo=False)
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_project(session: AsyncSession) -> Project:
    """An active client project."""
    project = Project(
        id=uuid4(),
        name="Website Relaunch",
        client_id=uuid4(),
        is_active=True,
        is_internal=False,
    )
    session.add(project)
    await session.commit()
    return project


@pytest_asyncio.fixture
async def test_employees(session: AsyncSession) -> dict[str, Employee]:
    """Alice, Bob and Carol."""
    employees = {
        name: Employee(id=uuid4(), name=f"{name} Example", email=f"{name.lower()}@test.com")
        for name in ("Alice", "Bob", "Carol")
    }
    session.add_all(employees.values())
    await session.commit()
    return employees


@pytest_asyncio.fixture
async def test_roles(session: AsyncSession, test_project: Project) -> dict[str, ProjectRole]:
    """Senior Developer at $50/h and Designer at $40/h."""
    roles = {
        "senior": ProjectRole(
            id=uuid4(),
            project_id=test_project.id,
            name="Senior Developer",
            hourly_rate_usd=Decimal("50.00"),
        ),
        "designer": ProjectRole(
            id=uuid4(),
            project_id=test_project.id,
            name="Designer",
            hourly_rate_usd=Decimal("40.00"),
        ),
    }
    session.add_all(roles.values())
    await session.commit()
    return roles


@pytest_asyncio.fixture
async def test_assignments(
    session: AsyncSession,
    test_project: Project,
    test_employees: dict[str, Employee],
    test_roles: dict[str, ProjectRole],
) -> dict[str, ProjectAssignment]:
    """Alice as Senior Developer, Bob as Designer, Carol with no role yet."""
    assignments = {
        "Alice": ProjectAssignment(
            employee_id=test_employees["Alice"].id,
            project_id=test_project.id,
            role_id=test_roles["senior"].id,
        ),
        "Bob": ProjectAssignment(
            employee_id=test_employees["Bob"].id,
            project_id=test_project.id,
            role_id=test_roles["designer"].id,
        ),
        "Carol": ProjectAssignment(
            employee_id=test_employees["Carol"].id,
            project_id=test_project.id,
            role_id=None,
        ),
    }
    session.add_all(assignments.values())
    await session.commit()
    return assignments


def make_entry(
    employee: Employee,
    project: Project,
    day: int,
    hours: str,
    billable: bool = True,
    status: str = "normal",
) -> TimeEntry:
    """Build a time entry in March 2024."""
    return TimeEntry(
        id=uuid4(),
        employee_id=employee.id,
        project_id=project.id,
        date=date(2024, 3, day),
        hours=Decimal(hours),
        billable=billable,
        status=status,
    )


@pytest_asyncio.fixture
async def test_time_entries(
    session: AsyncSession,
    test_project: Project,
    test_employees: dict[str, Employee],
    test_assignments: dict[str, ProjectAssignment],
) -> dict[str, TimeEntry]:
    """Billable hours for Alice (5h + 3h) and Bob (2h), plus ineligible entries."""
    alice = test_employees["Alice"]
    bob = test_employees["Bob"]
    entries = {
        "alice_mon": make_entry(alice, test_project, 4, "5"),
        "alice_tue": make_entry(alice, test_project, 5, "3"),
        "bob_mon": make_entry(bob, test_project, 4, "2"),
        "bob_on_hold": make_entry(bob, test_project, 6, "4", status="on_hold"),
        "alice_non_billable": make_entry(alice, test_project, 6, "1", billable=False),
    }
    session.add_all(entries.values())
    await session.commit()
    return entries


@pytest.fixture
def add_entries(session: AsyncSession):
    """Factory fixture: persist time entries given (employee, project, day, hours) tuples."""

    async def _add(*rows, **kwargs) -> list[TimeEntry]:
        entries = [make_entry(*row, **kwargs) for row in rows]
        session.add_all(entries)
        await session.commit()
        return entries

    return _add
