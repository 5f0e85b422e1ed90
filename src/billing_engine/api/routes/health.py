"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from billing_engine import __version__
from billing_engine.api.dependencies import DbSession
from billing_engine.models import Invoice

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
    ledger: str


class ReadinessResponse(BaseModel):
    status: str
    invoices: int | None = None


async def count_invoices(db: DbSession) -> int | None:
    """Count invoice headers; None when the ledger tables cannot be read."""
    try:
        return await db.scalar(select(func.count(Invoice.id)))
    except SQLAlchemyError:
        logger.warning("Invoice ledger is unreachable", exc_info=True)
        await db.rollback()
        return None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession) -> HealthResponse:
    """Report the engine version and whether the invoice ledger answers."""
    reachable = await count_invoices(db) is not None
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        ledger="reachable" if reachable else "unreachable",
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(db: DbSession, response: Response) -> ReadinessResponse:
    """Ready once the invoices table exists and can be queried."""
    invoices = await count_invoices(db)
    if invoices is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="not_ready")
    return ReadinessResponse(status="ready", invoices=invoices)


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
