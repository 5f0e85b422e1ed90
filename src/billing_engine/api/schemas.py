"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, computed_field

from billing_engine.services.recalculation_service import RecalculationScope
from billing_engine.services.state_machine import InvoiceStateMachine


class ErrorResponse(BaseModel):
    """Error body returned for domain errors."""

    detail: str
    code: str


# ============================================================================
# Invoice schemas
# ============================================================================


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice from a project's billable hours."""

    project_id: UUID
    notes: str | None = None


class InvoiceTransitionRequest(BaseModel):
    """Requested status change."""

    status: str


class DiscountUpdate(BaseModel):
    discount: Decimal


class NotesUpdate(BaseModel):
    notes: str | None = None


class InvoiceMetadataUpdate(BaseModel):
    """Partial update; only fields present in the body are changed."""

    invoice_number: str | None = None
    issue_date: date | None = None
    due_date: date | None = None


class LineHoursUpdate(BaseModel):
    hours: Decimal


class InvoiceLineResponse(BaseModel):
    """Billed-time line."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    employee_name: str
    role_name: str | None = None
    hours: Decimal
    rate_snapshot: Decimal
    amount: Decimal


class InvoiceResponse(BaseModel):
    """Invoice header with totals."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    status: str
    subtotal: Decimal
    discount: Decimal
    applied_discount: Decimal
    total: Decimal
    notes: str | None = None
    invoice_number: str | None = None
    issue_date: date | None = None
    due_date: date | None = None
    version: int
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def editable(self) -> bool:
        return InvoiceStateMachine.is_editable(self.status)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def next_statuses(self) -> list[str]:
        return InvoiceStateMachine.get_next_statuses(self.status)


class InvoiceListResponse(BaseModel):
    """Schema for listing invoices."""

    items: list[InvoiceResponse]
    total: int


class InvoiceSummaryResponse(BaseModel):
    draft_count: int
    outstanding_total: Decimal
    collected_total: Decimal


class LinkedTimeEntriesResponse(BaseModel):
    invoice_id: UUID
    time_entry_ids: list[UUID]


# ============================================================================
# Manual charge schemas
# ============================================================================


class ManualLineCreate(BaseModel):
    person_name: str
    hours: Decimal
    rate_usd: Decimal
    description: str | None = None


class ManualLineUpdate(BaseModel):
    """Partial update; line_total is always recomputed server-side."""

    person_name: str | None = None
    hours: Decimal | None = None
    rate_usd: Decimal | None = None
    description: str | None = None


class ManualLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    person_name: str
    hours: Decimal
    rate_usd: Decimal
    description: str | None = None
    line_total: Decimal


class FeeCreate(BaseModel):
    label: str
    quantity: Decimal = Decimal("1")
    unit_price_usd: Decimal
    description: str | None = None


class FeeUpdate(BaseModel):
    """Partial update; fee_total is always recomputed server-side."""

    label: str | None = None
    quantity: Decimal | None = None
    unit_price_usd: Decimal | None = None
    description: str | None = None


class FeeAttachmentCreate(BaseModel):
    file_name: str
    file_url: str
    file_size: int = 0


class FeeAttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    fee_id: UUID
    file_name: str
    file_url: str
    file_size: int
    created_at: datetime


class FeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    label: str
    quantity: Decimal
    unit_price_usd: Decimal
    description: str | None = None
    fee_total: Decimal
    attachments: list[FeeAttachmentResponse] = []


class InvoiceDetailResponse(InvoiceResponse):
    """Invoice with all three charge sources."""

    lines: list[InvoiceLineResponse] = []
    manual_lines: list[ManualLineResponse] = []
    fees: list[FeeResponse] = []


# ============================================================================
# Recalculation schemas
# ============================================================================


class RecalculationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    lines_total: int
    lines_changed: int
    previous_total: Decimal
    total: Decimal


class BatchRecalculationRequest(BaseModel):
    scope: RecalculationScope = RecalculationScope.ALL


class RecalculationFailureResponse(BaseModel):
    invoice_id: UUID
    error: str


class BatchRecalculationResponse(BaseModel):
    project_id: UUID
    scope: RecalculationScope
    processed: int
    failed: int
    results: list[RecalculationResponse]
    failures: list[RecalculationFailureResponse]


# ============================================================================
# Project role schemas
# ============================================================================


class RoleCreate(BaseModel):
    name: str
    hourly_rate_usd: Decimal


class RoleUpdate(BaseModel):
    name: str | None = None
    hourly_rate_usd: Decimal | None = None


class RoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    name: str
    hourly_rate_usd: Decimal


class AssignmentRequest(BaseModel):
    role_id: UUID | None = None
    assigned_by: UUID | None = None


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    project_id: UUID
    role_id: UUID | None = None
    assigned_by: UUID | None = None
