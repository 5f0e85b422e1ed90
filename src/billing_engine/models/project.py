"""Project billing roles and employee assignments."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from billing_engine.models.base import Base, TimestampMixin


class ProjectRole(Base, TimestampMixin):
    """Billable role on a project with its live hourly rate."""

    __tablename__ = "project_roles"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    hourly_rate_usd: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("hourly_rate_usd >= 0", name="project_role_rate_check"),
    )


class ProjectAssignment(Base, TimestampMixin):
    """Employee assignment to a project, optionally with a billing role."""

    __tablename__ = "employee_projects"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    role_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("project_roles.id", ondelete="RESTRICT"),
        nullable=True,
    )
    assigned_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "project_id", name="employee_project_unique"),
    )
