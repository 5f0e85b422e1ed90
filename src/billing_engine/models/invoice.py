"""Invoice ledger models: invoice header, billed lines, links, manual charges."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_engine.models.base import Base, TimestampMixin, utcnow


class Invoice(Base, TimestampMixin):
    """Invoice header with composed totals.

    subtotal = Σ lines.amount + Σ manual_lines.line_total + Σ fees.fee_total
    applied_discount = min(discount, subtotal) when clamping, else discount
    total = subtotal - applied_discount

    ``discount`` keeps the amount as entered; ``applied_discount`` is what
    was actually taken off the subtotal on the last recompute.
    """

    __tablename__ = "invoices"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    applied_discount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String, nullable=True)
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'sent', 'paid', 'cancelled', 'voided')",
            name="invoice_status_check",
        ),
        CheckConstraint("discount >= 0", name="invoice_discount_check"),
    )
    __mapper_args__ = {"version_id_col": version}

    # Relationships (always eager-loaded explicitly; never lazy in async code)
    lines: Mapped[list[InvoiceLine]] = relationship(
        back_populates="invoice", order_by="InvoiceLine.employee_name"
    )
    manual_lines: Mapped[list[InvoiceManualLine]] = relationship(
        back_populates="invoice", order_by="InvoiceManualLine.created_at"
    )
    fees: Mapped[list[InvoiceFee]] = relationship(
        back_populates="invoice", order_by="InvoiceFee.created_at"
    )
    time_entry_links: Mapped[list[InvoiceTimeEntry]] = relationship(back_populates="invoice")


class InvoiceLine(Base, TimestampMixin):
    """Billed-time line: one per (invoice, employee), hours pre-summed.

    employee_name and role_name are historical snapshots, not live joins.
    """

    __tablename__ = "invoice_lines"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    employee_name: Mapped[str] = mapped_column(String, nullable=False)
    role_name: Mapped[str | None] = mapped_column(String, nullable=True)
    hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    rate_snapshot: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint("invoice_id", "employee_id", name="invoice_line_employee_unique"),
        CheckConstraint("hours >= 0", name="invoice_line_hours_check"),
        CheckConstraint("rate_snapshot >= 0", name="invoice_line_rate_check"),
    )

    invoice: Mapped[Invoice] = relationship(back_populates="lines")


class InvoiceTimeEntry(Base, TimestampMixin):
    """Link of a time entry to the one invoice that billed it."""

    __tablename__ = "invoice_time_entries"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    time_entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("time_entries.id", ondelete="RESTRICT"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("time_entry_id", name="invoice_time_entry_unique"),
    )

    invoice: Mapped[Invoice] = relationship(back_populates="time_entry_links")


class InvoiceManualLine(Base, TimestampMixin):
    """Manually entered people line, independent of time entries."""

    __tablename__ = "invoice_manual_lines"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    person_name: Mapped[str] = mapped_column(String, nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    rate_usd: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    line_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    invoice: Mapped[Invoice] = relationship(back_populates="manual_lines")


class InvoiceFee(Base, TimestampMixin):
    """Flat fee charged on an invoice."""

    __tablename__ = "invoice_fees"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    label: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_price_usd: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    fee_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    invoice: Mapped[Invoice] = relationship(back_populates="fees")
    attachments: Mapped[list[InvoiceFeeAttachment]] = relationship(
        back_populates="fee",
        order_by="InvoiceFeeAttachment.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class InvoiceFeeAttachment(Base, TimestampMixin):
    """Documentary file reference on a fee; no effect on totals."""

    __tablename__ = "invoice_fee_attachments"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    fee_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoice_fees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String, nullable=False)
    file_url: Mapped[str] = mapped_column(String, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    fee: Mapped[InvoiceFee] = relationship(back_populates="attachments")
