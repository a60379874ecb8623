"""Tests for the B2B VAT backfill job."""

from datetime import date
from decimal import Decimal

import pytest

from settlement_engine.config import VatBackfillConfig, VatRateTable
from settlement_engine.jobs import VatBackfillJob
from settlement_engine.jobs.vat_backfill import apply_report_vat
from settlement_engine.repositories.base import (
    CHANGE_SOURCE_ADMIN,
    SYSTEM_ACTOR_IP,
    NotFoundError,
)

from tests.conftest import (
    FakeMerchantRepository,
    FakeOperatingCompanyRepository,
    FakePayoutRepository,
    FakeRoyaltyReportRepository,
    make_company,
    make_merchant,
    make_payout,
    make_report,
    utc,
)


def backfill(companies, merchants=None, reports=None, payouts=None, config=None):
    return VatBackfillJob(
        companies=FakeOperatingCompanyRepository(companies),
        merchants=FakeMerchantRepository(merchants or []),
        reports=FakeRoyaltyReportRepository(reports or []),
        payouts=FakePayoutRepository(payouts or []),
        config=config,
    )


def settled_reports(company_id: str, merchant_id: str):
    return [
        make_report(
            merchant_id=merchant_id,
            operating_company_id=company_id,
            payout_amount=Decimal("100"),
            correction_amount=Decimal("-5"),
            rolling_reserve_amount=Decimal("2"),
            fee_amount=Decimal("10"),
        ),
        make_report(
            merchant_id=merchant_id,
            operating_company_id=company_id,
            period_from=utc(2021, 2, 1),
            period_to=utc(2021, 2, 28, 23, 59, 59, 999999),
            payout_amount=Decimal("50"),
            fee_amount=Decimal("5"),
        ),
    ]


@pytest.mark.asyncio
class TestPayoutBackfill:
    """Operation A: pending payouts."""

    async def test_recomputes_payout(self):
        company = make_company("CY")
        reports = settled_reports(company.operating_company_id, "m1")
        payout = make_payout(
            operating_company_id=company.operating_company_id,
            merchant_id="m1",
            source_ids=[r.royalty_report_id for r in reports],
        )
        job = backfill([company], reports=reports, payouts=[payout])

        result = await job.extend_payouts_with_vat()

        assert payout.b2b_vat_rate == Decimal("0.19")
        assert payout.b2b_vat_base == Decimal("15.00")
        assert payout.b2b_vat_amount == Decimal("2.85")
        assert payout.total_fees == Decimal("145.00")
        assert payout.fees_excluding_vat == Decimal("142.15")
        assert payout.balance == Decimal("140.15")
        assert result.records_updated == 1
        assert job.payouts.updates == [
            (payout.payout_document_id, SYSTEM_ACTOR_IP, CHANGE_SOURCE_ADMIN)
        ]

    async def test_filters_by_status_cutoff_and_company(self):
        company = make_company("CY")
        job = backfill([company])

        await job.extend_payouts_with_vat()

        (criteria,) = job.payouts.filters
        assert criteria.statuses == ("pending",)
        assert criteria.date_from == utc(2021, 1, 1)
        assert criteria.operating_company_id == company.operating_company_id

    async def test_other_jurisdictions_untouched(self):
        cy = make_company("CY")
        de = make_company("DE")
        reports = settled_reports(cy.operating_company_id, "m1")
        foreign_merchant = make_payout(
            operating_company_id=cy.operating_company_id,
            company_country="DE",
            source_ids=[r.royalty_report_id for r in reports],
        )
        foreign_company = make_payout(
            operating_company_id=de.operating_company_id,
            source_ids=[r.royalty_report_id for r in reports],
        )
        job = backfill([cy, de], reports=reports, payouts=[foreign_merchant, foreign_company])

        result = await job.extend_payouts_with_vat()

        assert result.companies_matched == 1
        assert result.records_skipped == 1
        assert result.records_updated == 0
        assert job.payouts.updates == []
        assert foreign_merchant.b2b_vat_amount == Decimal("0")
        assert foreign_company.b2b_vat_amount == Decimal("0")

    async def test_payouts_before_cutoff_and_paid_untouched(self):
        company = make_company("CY")
        old = make_payout(
            operating_company_id=company.operating_company_id, created_at=utc(2020, 12, 31)
        )
        paid = make_payout(operating_company_id=company.operating_company_id, status="paid")
        job = backfill([company], payouts=[old, paid])

        result = await job.extend_payouts_with_vat()

        assert result.records_processed == 0
        assert job.payouts.updates == []

    async def test_missing_report_aborts(self):
        company = make_company("CY")
        payout = make_payout(
            operating_company_id=company.operating_company_id, source_ids=["missing"]
        )
        job = backfill([company], payouts=[payout])

        with pytest.raises(NotFoundError):
            await job.extend_payouts_with_vat()

        assert job.payouts.updates == []

    async def test_rerun_is_stable(self):
        company = make_company("CY")
        reports = settled_reports(company.operating_company_id, "m1")
        payout = make_payout(
            operating_company_id=company.operating_company_id,
            source_ids=[r.royalty_report_id for r in reports],
        )
        job = backfill([company], reports=reports, payouts=[payout])

        await job.extend_payouts_with_vat()
        first = (payout.total_fees, payout.balance, payout.b2b_vat_amount)
        await job.extend_payouts_with_vat()

        assert (payout.total_fees, payout.balance, payout.b2b_vat_amount) == first


@pytest.mark.asyncio
class TestRoyaltyBackfill:
    """Operation B: royalty reports."""

    async def test_recomputes_report(self):
        company = make_company("CY")
        merchant = make_merchant("CY")
        report = settled_reports(company.operating_company_id, merchant.merchant_id)[0]
        job = backfill([company], merchants=[merchant], reports=[report])

        result = await job.extend_royalties_with_vat()

        assert report.b2b_vat_rate == Decimal("0.19")
        assert report.b2b_vat_base == Decimal("10")
        assert report.b2b_vat_amount == Decimal("1.90")
        assert report.final_payout_amount == Decimal("93.10")
        assert result.records_updated == 1
        assert job.reports.updates == [
            (report.royalty_report_id, SYSTEM_ACTOR_IP, CHANGE_SOURCE_ADMIN)
        ]

    async def test_foreign_merchant_skipped(self):
        company = make_company("CY")
        merchant = make_merchant("DE")
        report = settled_reports(company.operating_company_id, merchant.merchant_id)[0]
        job = backfill([company], merchants=[merchant], reports=[report])

        result = await job.extend_royalties_with_vat()

        assert result.records_skipped == 1
        assert report.b2b_vat_amount == Decimal("0")
        assert job.reports.updates == []

    async def test_reports_of_other_operating_companies_untouched(self):
        cy = make_company("CY")
        de = make_company("DE")
        merchant = make_merchant("CY")
        foreign = settled_reports(de.operating_company_id, merchant.merchant_id)[0]
        job = backfill([cy, de], merchants=[merchant], reports=[foreign])

        result = await job.extend_royalties_with_vat()

        assert result.records_processed == 0
        assert foreign.b2b_vat_amount == Decimal("0")
        assert job.reports.updates == []

    async def test_reports_before_cutoff_untouched(self):
        company = make_company("CY")
        merchant = make_merchant("CY")
        report = make_report(
            merchant_id=merchant.merchant_id,
            operating_company_id=company.operating_company_id,
            period_from=utc(2020, 12, 1),
            period_to=utc(2020, 12, 31, 23, 59, 59, 999999),
            fee_amount=Decimal("10"),
        )
        job = backfill([company], merchants=[merchant], reports=[report])

        result = await job.extend_royalties_with_vat()

        assert result.records_processed == 0
        assert report.b2b_vat_amount == Decimal("0")

    async def test_missing_merchant_aborts(self):
        company = make_company("CY")
        report = settled_reports(company.operating_company_id, "unknown")[0]
        job = backfill([company], reports=[report])

        with pytest.raises(NotFoundError):
            await job.extend_royalties_with_vat()


class TestConfiguration:
    """Jurisdiction, cutoff and rate come from configuration."""

    @pytest.mark.asyncio
    async def test_custom_jurisdiction(self):
        config = VatBackfillConfig(
            jurisdiction="MT",
            cutoff=date(2022, 1, 1),
            rates=VatRateTable(rates={("MT", "MT"): Decimal("0.18")}),
        )
        company = make_company("MT")
        merchant = make_merchant("MT")
        report = make_report(
            merchant_id=merchant.merchant_id,
            operating_company_id=company.operating_company_id,
            period_from=utc(2022, 3, 1),
            period_to=utc(2022, 3, 31, 23, 59, 59, 999999),
            payout_amount=Decimal("20"),
            fee_amount=Decimal("2.5"),
        )
        job = backfill([company], merchants=[merchant], reports=[report], config=config)

        await job.extend_royalties_with_vat()

        assert report.b2b_vat_amount == Decimal("0.45")
        assert report.final_payout_amount == Decimal("19.55")

    def test_missing_rate_rejected(self):
        with pytest.raises(ValueError, match="no VAT rate"):
            VatBackfillConfig(jurisdiction="MT")

    def test_rate_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            VatRateTable(rates={("CY", "CY"): Decimal("1.5")})

    def test_unlisted_pair_has_zero_rate(self):
        assert VatRateTable().rate_for("CY", "DE") == Decimal("0")


def test_apply_report_vat_rounds_half_up():
    report = make_report(payout_amount=Decimal("10"), fee_amount=Decimal("0.5"))

    apply_report_vat(report, Decimal("0.19"))

    # 0.095 rounds up
    assert report.b2b_vat_amount == Decimal("0.10")
    assert report.final_payout_amount == Decimal("9.90")
