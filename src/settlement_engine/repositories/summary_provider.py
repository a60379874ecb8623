"""Royalty summary built from stored royalty reports."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from settlement_engine.calculators.types import (
    ProductsTotal,
    RoyaltyReportSummary,
    SummaryTotals,
)
from settlement_engine.models import Merchant
from settlement_engine.repositories.base import RoyaltyReportFilter, RoyaltyReportRepository
from settlement_engine.timeutil import end_of_day, format_date, local_date, start_of_day


class StoredRoyaltySummaryProvider:
    """Sums the merchant's stored royalty reports lying inside a window.

    A report counts when its whole period falls within the calendar days of
    ``date_from`` through ``date_to`` in the reporting timezone.
    """

    def __init__(self, reports: RoyaltyReportRepository, reporting_timezone: ZoneInfo):
        self.reports = reports
        self.tz = reporting_timezone

    async def build(
        self,
        merchant: Merchant,
        date_from: datetime,
        date_to: datetime,
    ) -> RoyaltyReportSummary:
        reports = await self.reports.find(
            RoyaltyReportFilter(
                merchant_id=merchant.merchant_id,
                period_from=start_of_day(local_date(date_from, self.tz), self.tz),
                period_to=end_of_day(local_date(date_to, self.tz), self.tz),
            )
        )

        products = ProductsTotal(
            gross_total_amount=Decimal("0"),
            total_fees=Decimal("0"),
            total_vat=Decimal("0"),
        )
        totals = SummaryTotals()
        currency = "EUR"
        operating_company_id = merchant.operating_company_id

        for report in reports:
            products.gross_total_amount += report.gross_total_amount
            products.total_fees += report.total_fees
            products.total_vat += report.total_vat

            totals.correction_amount += report.correction_amount
            totals.rolling_reserve_amount += report.rolling_reserve_amount
            totals.transactions_count += report.transactions_count
            totals.payout_amount += report.payout_amount
            totals.fee_amount += report.fee_amount
            currency = report.currency
            operating_company_id = report.operating_company_id

        return RoyaltyReportSummary(
            merchant_id=merchant.merchant_id,
            period_from=date_from,
            period_to=date_to,
            string_period_from=format_date(date_from.astimezone(self.tz)),
            string_period_to=format_date(date_to.astimezone(self.tz)),
            products_total=products,
            totals=totals,
            operating_company_id=operating_company_id,
            currency=currency,
        )
