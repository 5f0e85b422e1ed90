"""Billing engine command line interface.

Provides operational tools for:
- Creating the schema
- Batch recalculation of a project's unpaid invoices

Usage:
    python -m billing_engine.cli init-db
    python -m billing_engine.cli recalculate --project-id X --scope latest
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from uuid import UUID

from billing_engine.config import get_settings
from billing_engine.database import create_all, dispose_db, init_db
from billing_engine.logging_config import configure_logging
from billing_engine.services.recalculation_service import (
    RecalculationScope,
    recalculate_unpaid_for_project,
)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class BillingCli:
    """Billing engine command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m billing_engine.cli",
            description="Billing engine operational tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser("init-db", help="Create all tables")

        recalc = subparsers.add_parser(
            "recalculate",
            help="Re-price a project's unpaid invoices at current role rates",
        )
        recalc.add_argument(
            "--project-id",
            type=parse_uuid,
            required=True,
            help="Project whose draft and sent invoices are recalculated",
        )
        recalc.add_argument(
            "--scope",
            choices=[s.value for s in RecalculationScope],
            default=RecalculationScope.ALL.value,
            help="'all' unpaid invoices or only the 'latest' one (default: all)",
        )
        return parser

    def run(self, argv: list[str] | None = None) -> int:
        """Parse arguments and dispatch; returns a process exit code."""
        args = self.parser.parse_args(argv)
        if args.command is None:
            self.parser.print_help()
            return 1

        configure_logging(get_settings().log_level)
        handlers = {
            "init-db": self._init_db,
            "recalculate": self._recalculate,
        }
        return asyncio.run(handlers[args.command](args))

    async def _init_db(self, args: argparse.Namespace) -> int:
        engine, _ = init_db()
        try:
            await create_all(engine)
        finally:
            await dispose_db()
        print("Schema created")
        return 0

    async def _recalculate(self, args: argparse.Namespace) -> int:
        _, factory = init_db()
        try:
            batch = await recalculate_unpaid_for_project(factory, args.project_id, args.scope)
        finally:
            await dispose_db()

        print(
            json.dumps(
                {
                    "project_id": str(batch.project_id),
                    "scope": batch.scope.value,
                    "processed": batch.processed,
                    "failed": [
                        {"invoice_id": str(f.invoice_id), "error": f.error}
                        for f in batch.failures
                    ],
                },
                indent=2,
            )
        )
        return 0 if not batch.failures else 2


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    return BillingCli().run(argv)


if __name__ == "__main__":
    sys.exit(main())
