"""Employee and project records owned by the surrounding application.

The engine only reads these: employee names are snapshotted onto invoice
lines and project flags gate invoice creation.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_engine.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee identity."""

    __tablename__ = "employees"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)


class Project(Base, TimestampMixin):
    """Client project; deactivated rather than deleted."""

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    client_id: Mapped[UUID | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
