"""Rate resolution and invoice ledger engine for client billing."""

__version__ = "0.1.0"
