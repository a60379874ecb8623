"""Act of completion calculation.

An act of completion is a settlement statement for a merchant over an
arbitrary date window. It is never persisted; every request recomputes it
from the current royalty report data.

Rounding happens in two independent stages:
1. Base quantities from the summary go through the keyed MoneyRounder
2. Derived totals are rounded again to cents with ``round_half_up``

Both stages are required. The second one absorbs any residue picked up
while combining the rounded inputs.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal
from zoneinfo import ZoneInfo

from settlement_engine.calculators.money import MoneyRounder, Number, round_half_up, to_decimal
from settlement_engine.calculators.types import (
    ActOfCompletionDocument,
    ActOfCompletionPeriod,
    RoundingKey,
)
from settlement_engine.config import VatRateTable
from settlement_engine.repositories.base import (
    MerchantRepository,
    NotFoundError,
    OperatingCompanyRepository,
    RoyaltySummaryProvider,
)
from settlement_engine.timeutil import (
    END_OF_DAY_SECONDS,
    end_of_day,
    format_date,
    local_date,
    parse_date,
    start_of_day,
)

logger = logging.getLogger(__name__)


class ActOfCompletionError(Exception):
    """Validation failure reported to the caller as bad data."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


def invalid_date_from() -> ActOfCompletionError:
    return ActOfCompletionError("aoc000001", "invalid start date the act of completion")


def invalid_date_to() -> ActOfCompletionError:
    return ActOfCompletionError("aoc000002", "invalid end date the act of completion")


def invalid_merchant() -> ActOfCompletionError:
    return ActOfCompletionError("aoc000003", "invalid merchant identity the act of completion")


def invalid_date_range() -> ActOfCompletionError:
    return ActOfCompletionError("aoc000004", "invalid date range the act of completion")


class ActOfCompletionCalculator:
    """Derives a merchant's settlement figures for a date window.

    Settlement formulas:
        payout   = gross - fees - vat
        total    = payout + correction
        balance  = payout + correction - rolling_reserve

    Safe to call concurrently; the only shared state is the rounder cache.
    """

    def __init__(
        self,
        merchants: MerchantRepository,
        companies: OperatingCompanyRepository,
        summaries: RoyaltySummaryProvider,
        rounder: MoneyRounder,
        vat_rates: VatRateTable,
        reporting_timezone: ZoneInfo,
    ):
        self.merchants = merchants
        self.companies = companies
        self.summaries = summaries
        self.rounder = rounder
        self.vat_rates = vat_rates
        self.tz = reporting_timezone

    async def compute(
        self, merchant_id: str, date_from: str, date_to: str
    ) -> ActOfCompletionDocument:
        """Compute the act of completion.

        Args:
            merchant_id: Merchant to settle
            date_from: First day of the window, ``YYYY-MM-DD``
            date_to: Last day of the window, ``YYYY-MM-DD``

        Returns:
            The settlement document

        Raises:
            ActOfCompletionError: Bad dates, inverted range or unknown merchant
            InvalidAmountError: A summary amount is not finite
            NotFoundError: The operating company of the reports is missing
        """
        try:
            day_from = parse_date(date_from)
        except ValueError:
            raise invalid_date_from() from None

        try:
            day_to = parse_date(date_to)
        except ValueError:
            raise invalid_date_to() from None

        if day_from > day_to:
            raise invalid_date_range()

        period_from = start_of_day(day_from, self.tz)
        period_to = end_of_day(day_to, self.tz, END_OF_DAY_SECONDS)

        try:
            merchant = await self.merchants.get_by_id(merchant_id)
        except NotFoundError:
            logger.warning("Act of completion requested for unknown merchant %s", merchant_id)
            raise invalid_merchant() from None

        report = await self.summaries.build(merchant, period_from, period_to)

        gross_total_amount = self._round(
            merchant_id, "gross_total_amount", report.products_total.gross_total_amount
        )
        total_fees = self._round(merchant_id, "total_fees", report.products_total.total_fees)
        total_vat = self._round(merchant_id, "total_vat", report.products_total.total_vat)

        correction = to_decimal(report.totals.correction_amount)
        rolling_reserve = to_decimal(report.totals.rolling_reserve_amount)

        payout_amount = gross_total_amount - total_fees - total_vat
        total_fees_amount = round_half_up(payout_amount + correction)
        balance_amount = round_half_up(payout_amount + correction - rolling_reserve)

        company_id = report.operating_company_id or merchant.operating_company_id
        if not company_id:
            raise NotFoundError("operating company", "")
        company = await self.companies.get_by_id(company_id)

        vat_rate = self.vat_rates.rate_for(company.country, merchant.company_country)
        vat_base = round_half_up(report.totals.fee_amount)
        vat_amount = round_half_up(vat_base * vat_rate)

        return ActOfCompletionDocument(
            merchant_id=merchant_id,
            date_from=format_date(day_from),
            date_to=format_date(day_to),
            total_fees=total_fees_amount,
            balance=balance_amount,
            total_transactions=report.totals.transactions_count,
            corrections_amount=round_half_up(correction),
            b2b_vat_rate=vat_rate,
            b2b_vat_base=vat_base,
            b2b_vat_amount=vat_amount,
            fees_excluding_vat=round_half_up(total_fees_amount - vat_amount),
        )

    async def list_periods(self, merchant_id: str, today: date) -> list[ActOfCompletionPeriod]:
        """List the closed months available for an act of completion.

        One item per calendar month from the merchant's first payment up to,
        but not including, the month of ``today``. Newest first.
        """
        try:
            merchant = await self.merchants.get_by_id(merchant_id)
        except NotFoundError:
            raise invalid_merchant() from None

        if merchant.first_payment_at is None:
            return []

        first = local_date(merchant.first_payment_at, self.tz)
        year, month = first.year, first.month
        periods: list[ActOfCompletionPeriod] = []

        while (year, month) < (today.year, today.month):
            last_day = calendar.monthrange(year, month)[1]
            periods.append(
                ActOfCompletionPeriod(
                    date_title=f"{year:04d}-{month:02d}",
                    date_from=format_date(date(year, month, 1)),
                    date_to=format_date(date(year, month, last_day)),
                )
            )
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)

        periods.reverse()
        return periods

    def _round(self, merchant_id: str, field_key: str, value: Number) -> Decimal:
        return self.rounder.round(RoundingKey(merchant_id, field_key), value)
