"""Timesheet input consumed by invoice aggregation."""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from billing_engine.models.base import Base, TimestampMixin


class TimeEntryStatus(str, Enum):
    """Time entry status values."""

    NORMAL = "normal"
    ON_HOLD = "on_hold"


class TimeEntry(Base, TimestampMixin):
    """Hours logged by an employee on a project for one date."""

    __tablename__ = "time_entries"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    billable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TimeEntryStatus.NORMAL.value
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("hours > 0", name="time_entry_hours_check"),
        CheckConstraint("status IN ('normal', 'on_hold')", name="time_entry_status_check"),
        Index("ix_time_entries_project_billable", "project_id", "billable", "status"),
    )
