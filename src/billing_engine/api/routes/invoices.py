"""Invoice API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from billing_engine.api.dependencies import DbSession
from billing_engine.api.schemas import (
    DiscountUpdate,
    ErrorResponse,
    FeeAttachmentCreate,
    FeeAttachmentResponse,
    FeeCreate,
    FeeUpdate,
    InvoiceCreate,
    InvoiceDetailResponse,
    InvoiceLineResponse,
    InvoiceListResponse,
    InvoiceMetadataUpdate,
    InvoiceResponse,
    InvoiceSummaryResponse,
    InvoiceTransitionRequest,
    LineHoursUpdate,
    LinkedTimeEntriesResponse,
    ManualLineCreate,
    ManualLineUpdate,
    NotesUpdate,
    RecalculationResponse,
)
from billing_engine.services.invoice_service import InvoiceService
from billing_engine.services.ledger_service import InvoiceLedger
from billing_engine.services.manual_charge_service import ManualChargeService
from billing_engine.services.recalculation_service import RecalculationService

router = APIRouter(prefix="/invoices", tags=["invoices"])

InvoiceId = Annotated[UUID, Path()]

CONFLICT = {409: {"model": ErrorResponse}}
NOT_FOUND = {404: {"model": ErrorResponse}}


async def _detail(db: DbSession, invoice_id: UUID) -> InvoiceDetailResponse:
    invoice = await InvoiceService(db).get_invoice_detail(invoice_id)
    return InvoiceDetailResponse.model_validate(invoice)


# ============================================================================
# Invoice lifecycle
# ============================================================================


@router.post(
    "",
    response_model=InvoiceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **CONFLICT, 422: {"model": ErrorResponse}},
)
async def create_invoice(db: DbSession, payload: InvoiceCreate) -> InvoiceDetailResponse:
    """Create a draft invoice from the project's unbilled billable hours."""
    invoice = await InvoiceService(db).create_invoice(payload.project_id, payload.notes)
    await db.commit()
    return await _detail(db, invoice.id)


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    db: DbSession,
    project_id: UUID | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> InvoiceListResponse:
    """List invoices, newest first."""
    invoices = await InvoiceService(db).list_invoices(project_id=project_id, status=status_filter)
    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(invoice) for invoice in invoices],
        total=len(invoices),
    )


@router.get("/summary", response_model=InvoiceSummaryResponse)
async def invoice_summary(db: DbSession) -> InvoiceSummaryResponse:
    """Draft count plus outstanding and collected totals."""
    summary = await InvoiceService(db).summarize()
    return InvoiceSummaryResponse(
        draft_count=summary.draft_count,
        outstanding_total=summary.outstanding_total,
        collected_total=summary.collected_total,
    )


@router.get("/{invoice_id}", response_model=InvoiceDetailResponse, responses=NOT_FOUND)
async def get_invoice(db: DbSession, invoice_id: InvoiceId) -> InvoiceDetailResponse:
    """Get an invoice with its lines, manual lines and fees."""
    return await _detail(db, invoice_id)


@router.get("/{invoice_id}/time-entries", response_model=LinkedTimeEntriesResponse)
async def get_linked_time_entries(
    db: DbSession, invoice_id: InvoiceId
) -> LinkedTimeEntriesResponse:
    """Time entries billed by this invoice."""
    await InvoiceLedger(db).get_invoice(invoice_id)
    entry_ids = await InvoiceService(db).get_linked_time_entry_ids(invoice_id)
    return LinkedTimeEntriesResponse(invoice_id=invoice_id, time_entry_ids=entry_ids)


@router.post(
    "/{invoice_id}/transition",
    response_model=InvoiceDetailResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def transition_invoice(
    db: DbSession, invoice_id: InvoiceId, payload: InvoiceTransitionRequest
) -> InvoiceDetailResponse:
    """Move an invoice to a new status."""
    await InvoiceLedger(db).transition(invoice_id, payload.status)
    await db.commit()
    return await _detail(db, invoice_id)


@router.put(
    "/{invoice_id}/discount",
    response_model=InvoiceDetailResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def update_discount(
    db: DbSession, invoice_id: InvoiceId, payload: DiscountUpdate
) -> InvoiceDetailResponse:
    await InvoiceLedger(db).update_discount(invoice_id, payload.discount)
    await db.commit()
    return await _detail(db, invoice_id)


@router.put(
    "/{invoice_id}/notes",
    response_model=InvoiceDetailResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def update_notes(
    db: DbSession, invoice_id: InvoiceId, payload: NotesUpdate
) -> InvoiceDetailResponse:
    await InvoiceLedger(db).update_notes(invoice_id, payload.notes)
    await db.commit()
    return await _detail(db, invoice_id)


@router.patch(
    "/{invoice_id}/metadata",
    response_model=InvoiceDetailResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def update_metadata(
    db: DbSession, invoice_id: InvoiceId, payload: InvoiceMetadataUpdate
) -> InvoiceDetailResponse:
    """Update invoice number, issue date and due date."""
    await InvoiceLedger(db).update_metadata(invoice_id, payload.model_dump(exclude_unset=True))
    await db.commit()
    return await _detail(db, invoice_id)


@router.post(
    "/{invoice_id}/recalculate",
    response_model=RecalculationResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def recalculate_invoice(db: DbSession, invoice_id: InvoiceId) -> RecalculationResponse:
    """Re-price billed lines at current role rates."""
    result = await RecalculationService(db).recalculate_invoice(invoice_id)
    await db.commit()
    return RecalculationResponse.model_validate(result)


# ============================================================================
# Billed lines
# ============================================================================


@router.patch(
    "/{invoice_id}/lines/{line_id}",
    response_model=InvoiceLineResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def update_line_hours(
    db: DbSession, invoice_id: InvoiceId, line_id: UUID, payload: LineHoursUpdate
) -> InvoiceLineResponse:
    line = await InvoiceLedger(db).update_line_hours(invoice_id, line_id, payload.hours)
    await db.commit()
    return InvoiceLineResponse.model_validate(line)


@router.delete(
    "/{invoice_id}/lines/{line_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, **CONFLICT},
)
async def remove_line(db: DbSession, invoice_id: InvoiceId, line_id: UUID) -> None:
    await InvoiceLedger(db).remove_line(invoice_id, line_id)
    await db.commit()


# ============================================================================
# Manual people lines
# ============================================================================


@router.post(
    "/{invoice_id}/manual-lines",
    response_model=InvoiceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **CONFLICT},
)
async def add_manual_line(
    db: DbSession, invoice_id: InvoiceId, payload: ManualLineCreate
) -> InvoiceDetailResponse:
    await ManualChargeService(db).add_manual_line(
        invoice_id,
        person_name=payload.person_name,
        hours=payload.hours,
        rate_usd=payload.rate_usd,
        description=payload.description,
    )
    await db.commit()
    return await _detail(db, invoice_id)


@router.patch(
    "/{invoice_id}/manual-lines/{line_id}",
    response_model=InvoiceDetailResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def update_manual_line(
    db: DbSession, invoice_id: InvoiceId, line_id: UUID, payload: ManualLineUpdate
) -> InvoiceDetailResponse:
    await ManualChargeService(db).update_manual_line(
        invoice_id, line_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return await _detail(db, invoice_id)


@router.delete(
    "/{invoice_id}/manual-lines/{line_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, **CONFLICT},
)
async def delete_manual_line(db: DbSession, invoice_id: InvoiceId, line_id: UUID) -> None:
    await ManualChargeService(db).delete_manual_line(invoice_id, line_id)
    await db.commit()


# ============================================================================
# Fees and attachments
# ============================================================================


@router.post(
    "/{invoice_id}/fees",
    response_model=InvoiceDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **CONFLICT},
)
async def add_fee(
    db: DbSession, invoice_id: InvoiceId, payload: FeeCreate
) -> InvoiceDetailResponse:
    await ManualChargeService(db).add_fee(
        invoice_id,
        label=payload.label,
        quantity=payload.quantity,
        unit_price_usd=payload.unit_price_usd,
        description=payload.description,
    )
    await db.commit()
    return await _detail(db, invoice_id)


@router.patch(
    "/{invoice_id}/fees/{fee_id}",
    response_model=InvoiceDetailResponse,
    responses={**NOT_FOUND, **CONFLICT},
)
async def update_fee(
    db: DbSession, invoice_id: InvoiceId, fee_id: UUID, payload: FeeUpdate
) -> InvoiceDetailResponse:
    await ManualChargeService(db).update_fee(
        invoice_id, fee_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return await _detail(db, invoice_id)


@router.delete(
    "/{invoice_id}/fees/{fee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, **CONFLICT},
)
async def delete_fee(db: DbSession, invoice_id: InvoiceId, fee_id: UUID) -> None:
    await ManualChargeService(db).delete_fee(invoice_id, fee_id)
    await db.commit()


@router.get(
    "/{invoice_id}/fees/{fee_id}/attachments",
    response_model=list[FeeAttachmentResponse],
    responses=NOT_FOUND,
)
async def list_fee_attachments(
    db: DbSession, invoice_id: InvoiceId, fee_id: UUID
) -> list[FeeAttachmentResponse]:
    attachments = await ManualChargeService(db).list_fee_attachments(invoice_id, fee_id)
    return [FeeAttachmentResponse.model_validate(a) for a in attachments]


@router.post(
    "/{invoice_id}/fees/{fee_id}/attachments",
    response_model=FeeAttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**NOT_FOUND, **CONFLICT},
)
async def add_fee_attachment(
    db: DbSession, invoice_id: InvoiceId, fee_id: UUID, payload: FeeAttachmentCreate
) -> FeeAttachmentResponse:
    attachment = await ManualChargeService(db).add_fee_attachment(
        invoice_id,
        fee_id,
        file_name=payload.file_name,
        file_url=payload.file_url,
        file_size=payload.file_size,
    )
    await db.commit()
    return FeeAttachmentResponse.model_validate(attachment)


@router.delete(
    "/{invoice_id}/fees/{fee_id}/attachments/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, **CONFLICT},
)
async def delete_fee_attachment(
    db: DbSession, invoice_id: InvoiceId, fee_id: UUID, attachment_id: UUID
) -> None:
    await ManualChargeService(db).delete_fee_attachment(invoice_id, fee_id, attachment_id)
    await db.commit()
