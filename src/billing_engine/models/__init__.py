"""ORM models for the billing engine."""

from billing_engine.models.base import Base, TimestampMixin
from billing_engine.models.directory import Employee, Project
from billing_engine.models.invoice import (
    Invoice,
    InvoiceFee,
    InvoiceFeeAttachment,
    InvoiceLine,
    InvoiceManualLine,
    InvoiceTimeEntry,
)
from billing_engine.models.project import ProjectAssignment, ProjectRole
from billing_engine.models.time_entry import TimeEntry, TimeEntryStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "Employee",
    "Project",
    "ProjectRole",
    "ProjectAssignment",
    "TimeEntry",
    "TimeEntryStatus",
    "Invoice",
    "InvoiceLine",
    "InvoiceTimeEntry",
    "InvoiceManualLine",
    "InvoiceFee",
    "InvoiceFeeAttachment",
]
