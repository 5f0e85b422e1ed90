"""Billing engine services."""

from billing_engine.services.invoice_service import InvoiceService, InvoiceSummary
from billing_engine.services.ledger_service import InvoiceLedger
from billing_engine.services.manual_charge_service import ManualChargeService
from billing_engine.services.recalculation_service import (
    BatchRecalculationResult,
    RecalculationResult,
    RecalculationScope,
    RecalculationService,
    recalculate_unpaid_for_project,
)
from billing_engine.services.role_service import ProjectRoleService
from billing_engine.services.state_machine import InvoiceStateMachine, InvoiceStatus

__all__ = [
    "InvoiceService",
    "InvoiceSummary",
    "InvoiceLedger",
    "ManualChargeService",
    "BatchRecalculationResult",
    "RecalculationResult",
    "RecalculationScope",
    "RecalculationService",
    "recalculate_unpaid_for_project",
    "ProjectRoleService",
    "InvoiceStateMachine",
    "InvoiceStatus",
]
