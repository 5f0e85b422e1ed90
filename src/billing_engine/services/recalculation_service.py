"""Re-derivation of snapshotted rates from current live rates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from billing_engine.calculators.line_builder import InvoiceLineBuilder
from billing_engine.calculators.rate_resolver import RateResolver
from billing_engine.database import unit_of_work
from billing_engine.models import Invoice, InvoiceLine
from billing_engine.services.ledger_service import InvoiceLedger
from billing_engine.services.state_machine import InvoiceStateMachine

logger = logging.getLogger(__name__)


class RecalculationScope(str, Enum):
    """Which unpaid invoices of a project a batch recalculation touches."""

    ALL = "all"
    LATEST = "latest"


@dataclass(frozen=True)
class RecalculationResult:
    """Outcome of recalculating one invoice."""

    invoice_id: UUID
    lines_total: int
    lines_changed: int
    previous_total: Decimal
    total: Decimal


@dataclass(frozen=True)
class RecalculationFailure:
    """An invoice the batch could not recalculate."""

    invoice_id: UUID
    error: str


@dataclass
class BatchRecalculationResult:
    """Outcome of recalculating a project's unpaid invoices."""

    project_id: UUID
    scope: RecalculationScope
    results: list[RecalculationResult] = field(default_factory=list)
    failures: list[RecalculationFailure] = field(default_factory=list)

    @property
    def processed(self) -> int:
        """Number of invoices recalculated and committed."""
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.failures)


class RecalculationService:
    """Rewrites rate_snapshot, amount and role_name on billed lines.

    Hours are never changed. Running twice with no rate change in between
    leaves every line as it was.
    """

    def __init__(
        self,
        session: AsyncSession,
        rate_resolver: RateResolver | None = None,
        ledger: InvoiceLedger | None = None,
    ):
        self.session = session
        self.rate_resolver = rate_resolver or RateResolver(session)
        self.ledger = ledger or InvoiceLedger(session)

    async def recalculate_invoice(self, invoice_id: UUID) -> RecalculationResult:
        """Re-resolve every billed line of one invoice and resum."""
        invoice = await self.ledger.get_editable_invoice(invoice_id)
        previous_total = invoice.total

        result = await self.session.execute(
            select(InvoiceLine)
            .where(InvoiceLine.invoice_id == invoice.id)
            .order_by(InvoiceLine.employee_name, InvoiceLine.id)
            .execution_options(populate_existing=True)
        )
        lines = list(result.scalars().all())

        rates = await self.rate_resolver.resolve_rates(
            [line.employee_id for line in lines], invoice.project_id
        )

        changed = 0
        for line in lines:
            resolved = rates[line.employee_id]
            amount = InvoiceLineBuilder.line_amount(line.hours, resolved.rate)
            if (
                line.rate_snapshot != resolved.rate
                or line.amount != amount
                or line.role_name != resolved.role_name
            ):
                line.rate_snapshot = resolved.rate
                line.amount = amount
                line.role_name = resolved.role_name
                changed += 1

        totals = await self.ledger.recompute_totals(invoice)

        logger.info(
            "Recalculated invoice %s: %d of %d line(s) changed, total %s -> %s",
            invoice.id,
            changed,
            len(lines),
            previous_total,
            totals.total,
        )
        return RecalculationResult(
            invoice_id=invoice.id,
            lines_total=len(lines),
            lines_changed=changed,
            previous_total=previous_total,
            total=totals.total,
        )


async def select_unpaid_invoice_ids(
    session: AsyncSession,
    project_id: UUID,
    scope: RecalculationScope,
) -> list[UUID]:
    """Draft and sent invoices of a project, newest first, ties broken by id."""
    query = (
        select(Invoice.id)
        .where(
            Invoice.project_id == project_id,
            Invoice.status.in_([s.value for s in InvoiceStateMachine.UNPAID]),
        )
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
    )
    if scope == RecalculationScope.LATEST:
        query = query.limit(1)
    result = await session.execute(query)
    return list(result.scalars())


async def recalculate_unpaid_for_project(
    session_factory: async_sessionmaker[AsyncSession],
    project_id: UUID,
    scope: RecalculationScope | str = RecalculationScope.ALL,
) -> BatchRecalculationResult:
    """Recalculate a project's unpaid invoices, one unit of work per invoice.

    A failing invoice is rolled back, logged and reported; the batch moves
    on. Invoices committed before an interruption stay committed.
    """
    scope = RecalculationScope(scope)
    async with session_factory() as session:
        invoice_ids = await select_unpaid_invoice_ids(session, project_id, scope)

    batch = BatchRecalculationResult(project_id=project_id, scope=scope)
    for invoice_id in invoice_ids:
        try:
            async with unit_of_work(session_factory) as session:
                result = await RecalculationService(session).recalculate_invoice(invoice_id)
        except Exception as exc:
            logger.exception(
                "Recalculation failed for invoice %s of project %s",
                invoice_id,
                project_id,
            )
            batch.failures.append(RecalculationFailure(invoice_id=invoice_id, error=str(exc)))
            continue
        batch.results.append(result)

    logger.info(
        "Batch recalculation for project %s (%s): %d processed, %d failed",
        project_id,
        scope.value,
        batch.processed,
        batch.failed,
    )
    return batch
