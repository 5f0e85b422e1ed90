"""Billing calculations: rate resolution, line arithmetic, aggregation."""

from billing_engine.calculators.aggregator import TimeEntryAggregator
from billing_engine.calculators.line_builder import InvoiceLineBuilder
from billing_engine.calculators.rate_resolver import RateResolver, resolve_from_records
from billing_engine.calculators.types import (
    InvoiceDraft,
    InvoiceLineDraft,
    InvoiceTotals,
    ResolvedRate,
)

__all__ = [
    "TimeEntryAggregator",
    "InvoiceLineBuilder",
    "RateResolver",
    "resolve_from_records",
    "InvoiceDraft",
    "InvoiceLineDraft",
    "InvoiceTotals",
    "ResolvedRate",
]
