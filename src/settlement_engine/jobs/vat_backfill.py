"""B2B VAT backfill job.

Applies the configured B2B VAT rule retroactively to pending payout
documents and royalty reports of one jurisdiction, where both the
operating company and the merchant are incorporated there.

Every figure is recomputed from the royalty report data on each run, so a
run that failed halfway can simply be started again. Missing royalty
reports or merchants and repository failures abort the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from decimal import Decimal

from settlement_engine.calculators.money import round_half_up, to_decimal
from settlement_engine.config import VatBackfillConfig
from settlement_engine.models import OperatingCompany, PayoutDocument, RoyaltyReport
from settlement_engine.repositories.base import (
    CHANGE_SOURCE_ADMIN,
    SYSTEM_ACTOR_IP,
    MerchantRepository,
    OperatingCompanyRepository,
    PayoutFilter,
    PayoutRepository,
    RoyaltyReportFilter,
    RoyaltyReportRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class VatBackfillResult:
    """Counts from one backfill operation."""

    companies_matched: int = 0
    records_processed: int = 0
    records_updated: int = 0
    records_skipped: int = 0


class VatBackfillJob:
    """Recomputes B2B VAT on historical payouts and royalty reports."""

    def __init__(
        self,
        companies: OperatingCompanyRepository,
        merchants: MerchantRepository,
        reports: RoyaltyReportRepository,
        payouts: PayoutRepository,
        config: VatBackfillConfig | None = None,
    ):
        self.companies = companies
        self.merchants = merchants
        self.reports = reports
        self.payouts = payouts
        self.config = config or VatBackfillConfig()

    @property
    def cutoff(self) -> datetime:
        return datetime.combine(self.config.cutoff, time.min, tzinfo=timezone.utc)

    async def extend_payouts_with_vat(self) -> VatBackfillResult:
        """Recompute VAT, fees and balance of pending payouts."""
        result = VatBackfillResult()
        jurisdiction = self.config.jurisdiction

        for company in await self._matching_companies():
            result.companies_matched += 1

            payouts = await self.payouts.find(
                PayoutFilter(
                    statuses=(self.config.payout_status,),
                    date_from=self.cutoff,
                    operating_company_id=company.operating_company_id,
                )
            )

            for payout in payouts:
                result.records_processed += 1

                if payout.company_country != jurisdiction:
                    result.records_skipped += 1
                    continue

                await self.recompute_payout(payout, company)
                await self.payouts.update(payout, SYSTEM_ACTOR_IP, CHANGE_SOURCE_ADMIN)
                result.records_updated += 1

        logger.info(
            "Payout VAT backfill for %s finished: %d updated, %d skipped",
            jurisdiction,
            result.records_updated,
            result.records_skipped,
        )
        return result

    async def extend_royalties_with_vat(self) -> VatBackfillResult:
        """Recompute VAT and final payout of royalty reports.

        Reports are selected per matching operating company: only reports
        owned by an operating company of the jurisdiction are touched, even
        when a merchant of the jurisdiction also has reports under an
        operating company elsewhere.
        """
        result = VatBackfillResult()
        jurisdiction = self.config.jurisdiction

        for company in await self._matching_companies():
            result.companies_matched += 1

            reports = await self.reports.find(
                RoyaltyReportFilter(
                    operating_company_id=company.operating_company_id,
                    period_from=self.cutoff,
                )
            )

            for report in reports:
                result.records_processed += 1

                merchant = await self.merchants.get_by_id(report.merchant_id)
                if merchant.company_country != jurisdiction:
                    result.records_skipped += 1
                    continue

                rate = self.config.rates.rate_for(company.country, merchant.company_country)
                apply_report_vat(report, rate)
                await self.reports.update(report, SYSTEM_ACTOR_IP, CHANGE_SOURCE_ADMIN)
                result.records_updated += 1

        logger.info(
            "Royalty report VAT backfill for %s finished: %d updated, %d skipped",
            jurisdiction,
            result.records_updated,
            result.records_skipped,
        )
        return result

    async def recompute_payout(self, payout: PayoutDocument, company: OperatingCompany) -> None:
        """Rebuild a payout's totals from its royalty reports.

        Raises:
            NotFoundError: If a constituent royalty report is missing.
        """
        rate = self.config.rates.rate_for(company.country, payout.company_country)
        vat_base = Decimal("0")
        total_fees = Decimal("0")
        balance = Decimal("0")

        for report_id in payout.source_ids:
            report = await self.reports.get_by_id(report_id)

            payout_amount = to_decimal(report.payout_amount)
            correction = to_decimal(report.correction_amount)

            vat_base += to_decimal(report.fee_amount)
            total_fees += payout_amount + correction
            balance += payout_amount + correction - to_decimal(report.rolling_reserve_amount)

        total_fees = round_half_up(total_fees)
        balance = round_half_up(balance)

        payout.b2b_vat_rate = rate
        payout.b2b_vat_base = round_half_up(vat_base)
        payout.b2b_vat_amount = round_half_up(payout.b2b_vat_base * rate)
        payout.total_fees = total_fees
        payout.fees_excluding_vat = round_half_up(total_fees - payout.b2b_vat_amount)
        payout.balance = round_half_up(balance - payout.b2b_vat_amount)

    async def _matching_companies(self) -> list[OperatingCompany]:
        companies = await self.companies.get_all()
        return [c for c in companies if c.country == self.config.jurisdiction]


def apply_report_vat(report: RoyaltyReport, rate: Decimal) -> None:
    """Set a report's B2B VAT figures for the given rate."""
    report.b2b_vat_rate = rate
    report.b2b_vat_base = to_decimal(report.fee_amount)
    report.b2b_vat_amount = round_half_up(report.b2b_vat_base * rate)
    report.final_payout_amount = round_half_up(
        to_decimal(report.payout_amount)
        + to_decimal(report.correction_amount)
        - report.b2b_vat_amount
    )
