"""Royalty report period normalization job.

Repairs period boundaries stored with stray time-of-day components and
recomputes the ``YYYY-MM-DD`` period strings of royalty reports and of the
payout documents built from them.

Boundary rules (kept as found in stored data, do not change without
confirming with finance):
- ``period_from`` with a nonzero sub-second part snaps to start of day
- ``period_to`` with a zero sub-second part snaps to end of day
  (23:59:59.999999), which leaves it with a nonzero sub-second part

Each record is persisted on its own. Any repository error aborts the run;
corrections already written stay, and re-running converges to the same
state because corrected boundaries no longer match either rule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from zoneinfo import ZoneInfo

from settlement_engine.models import PayoutDocument, RoyaltyReport
from settlement_engine.repositories.base import (
    CHANGE_SOURCE_SYSTEM_TASK,
    SYSTEM_ACTOR_IP,
    PayoutRepository,
    RoyaltyReportRepository,
)
from settlement_engine.timeutil import (
    end_of_day,
    format_date,
    from_storage,
    local_date,
    start_of_day,
    to_storage,
)

logger = logging.getLogger(__name__)


@dataclass
class PeriodNormalizationResult:
    """Counts from one normalization run."""

    reports_processed: int = 0
    reports_updated: int = 0
    payouts_processed: int = 0
    payouts_updated: int = 0
    payouts_skipped: int = 0
    payouts_unchanged: int = 0


class PayoutPeriodOutcome(str, Enum):
    """What happened to one payout's period strings."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    # No constituent ids, or none of them found
    SKIPPED = "skipped"


class PeriodNormalizer:
    """Restartable batch job normalizing report and payout periods."""

    def __init__(
        self,
        reports: RoyaltyReportRepository,
        payouts: PayoutRepository,
        reporting_timezone: ZoneInfo,
    ):
        self.reports = reports
        self.payouts = payouts
        self.tz = reporting_timezone

    async def run(self) -> PeriodNormalizationResult:
        result = PeriodNormalizationResult()
        logger.info("Period normalization started")

        reports = await self.reports.get_all()
        reports_by_id: dict[str, RoyaltyReport] = {}

        for report in reports:
            reports_by_id[report.royalty_report_id] = report
            result.reports_processed += 1

            if self.normalize_report(report):
                await self.reports.update(report, SYSTEM_ACTOR_IP, CHANGE_SOURCE_SYSTEM_TASK)
                result.reports_updated += 1

        payouts = await self.payouts.find_all()

        for payout in payouts:
            result.payouts_processed += 1

            outcome = self.apply_payout_period(payout, reports_by_id)
            if outcome is PayoutPeriodOutcome.SKIPPED:
                result.payouts_skipped += 1
            elif outcome is PayoutPeriodOutcome.UNCHANGED:
                result.payouts_unchanged += 1
            else:
                await self.payouts.update(payout, SYSTEM_ACTOR_IP, CHANGE_SOURCE_SYSTEM_TASK)
                result.payouts_updated += 1

        logger.info(
            "Period normalization finished: %d/%d reports updated, "
            "%d/%d payouts updated, %d unchanged, %d skipped",
            result.reports_updated,
            result.reports_processed,
            result.payouts_updated,
            result.payouts_processed,
            result.payouts_unchanged,
            result.payouts_skipped,
        )
        return result

    def normalize_report(self, report: RoyaltyReport) -> bool:
        """Correct a report's boundaries and period strings in place.

        Returns True if any field changed.
        """
        changed = False

        period_from = from_storage(report.period_from)
        if period_from.microsecond != 0:
            period_from = start_of_day(local_date(period_from, self.tz), self.tz)
            report.period_from = to_storage(period_from)
            changed = True

        period_to = from_storage(report.period_to)
        if period_to.microsecond == 0:
            period_to = end_of_day(local_date(period_to, self.tz), self.tz)
            report.period_to = to_storage(period_to)
            changed = True

        string_from = format_date(period_from.astimezone(self.tz))
        string_to = format_date(period_to.astimezone(self.tz))
        if (report.string_period_from, report.string_period_to) != (string_from, string_to):
            report.string_period_from = string_from
            report.string_period_to = string_to
            changed = True

        return changed

    def apply_payout_period(
        self, payout: PayoutDocument, reports_by_id: dict[str, RoyaltyReport]
    ) -> PayoutPeriodOutcome:
        """Set the payout's period to span its constituent reports.

        Unknown report ids are ignored.
        """
        if not payout.source_ids:
            return PayoutPeriodOutcome.SKIPPED

        dates: list[str] = []
        for report_id in payout.source_ids:
            report = reports_by_id.get(report_id)
            if report is None:
                logger.warning(
                    "Payout %s references unknown royalty report %s",
                    payout.payout_document_id,
                    report_id,
                )
                continue
            dates.extend((report.string_period_from, report.string_period_to))

        if not dates:
            return PayoutPeriodOutcome.SKIPPED

        # Zero-padded ISO dates sort chronologically as strings
        dates.sort()
        period = (dates[0], dates[-1])
        if (payout.string_period_from, payout.string_period_to) == period:
            return PayoutPeriodOutcome.UNCHANGED

        payout.string_period_from, payout.string_period_to = period
        return PayoutPeriodOutcome.UPDATED

