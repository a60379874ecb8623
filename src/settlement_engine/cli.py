"""Settlement jobs command line interface.

Runs the restartable batch jobs against the configured database. Each job
can be re-invoked after a failure; it recomputes from stored data and
converges to the same state.

Usage:
    settlement-jobs fix-report-dates
    settlement-jobs extend-payouts-vat
    settlement-jobs extend-royalties-vat
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from settlement_engine.config import Settings, get_settings
from settlement_engine.database import dispose_db, get_session
from settlement_engine.jobs import PeriodNormalizer, VatBackfillJob
from settlement_engine.repositories import (
    SqlMerchantRepository,
    SqlOperatingCompanyRepository,
    SqlPayoutRepository,
    SqlRoyaltyReportRepository,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class JobsCli:
    """Settlement jobs command line interface."""

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session_factory = session_factory or get_session
        self.settings = settings or get_settings()
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="settlement-jobs",
            description="Settlement batch jobs",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Enable debug logging",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser(
            "fix-report-dates",
            help="Normalize royalty report periods and payout period strings",
        )
        subparsers.add_parser(
            "extend-payouts-vat",
            help="Recompute B2B VAT on pending payout documents",
        )
        subparsers.add_parser(
            "extend-royalties-vat",
            help="Recompute B2B VAT on royalty reports",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        logging.basicConfig(
            level=logging.DEBUG if parsed.verbose else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        handlers: dict[str, Callable[[AsyncSession], Any]] = {
            "fix-report-dates": self._cmd_fix_report_dates,
            "extend-payouts-vat": self._cmd_extend_payouts_vat,
            "extend-royalties-vat": self._cmd_extend_royalties_vat,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            result = asyncio.run(self._run_in_session(handler))
        except Exception as e:
            logger.exception("Job %s failed", parsed.command)
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

        print(json.dumps({"command": parsed.command, **dataclasses.asdict(result)}))
        return 0

    async def _run_in_session(self, handler: Callable[[AsyncSession], Any]) -> Any:
        try:
            async with self.session_factory() as session:
                return await handler(session)
        finally:
            if self.session_factory is get_session:
                await dispose_db()

    async def _cmd_fix_report_dates(self, session: AsyncSession) -> Any:
        job = PeriodNormalizer(
            reports=SqlRoyaltyReportRepository(session),
            payouts=SqlPayoutRepository(session),
            reporting_timezone=ZoneInfo(self.settings.reporting_timezone),
        )
        return await job.run()

    async def _cmd_extend_payouts_vat(self, session: AsyncSession) -> Any:
        return await self._vat_job(session).extend_payouts_with_vat()

    async def _cmd_extend_royalties_vat(self, session: AsyncSession) -> Any:
        return await self._vat_job(session).extend_royalties_with_vat()

    def _vat_job(self, session: AsyncSession) -> VatBackfillJob:
        return VatBackfillJob(
            companies=SqlOperatingCompanyRepository(session),
            merchants=SqlMerchantRepository(session),
            reports=SqlRoyaltyReportRepository(session),
            payouts=SqlPayoutRepository(session),
            config=self.settings.vat_backfill_config(),
        )


def main() -> int:
    """CLI entry point."""
    cli = JobsCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
