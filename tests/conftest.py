"""Pytest fixtures for settlement engine tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from settlement_engine.calculators.types import RoyaltyReportSummary
from settlement_engine.models import (
    Base,
    Merchant,
    OperatingCompany,
    PayoutDocument,
    RoyaltyReport,
)
from settlement_engine.repositories.base import NotFoundError, PayoutFilter, RoyaltyReportFilter
from settlement_engine.timeutil import from_storage

TEST_DATABASE_URL = "sqlite+aiosqlite://"

UTC = ZoneInfo("UTC")


# =============================================================================
# Entity builders
# =============================================================================


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_company(country: str = "CY", **overrides: Any) -> OperatingCompany:
    values: dict[str, Any] = {
        "operating_company_id": str(uuid4()),
        "name": f"Operating company {country}",
        "country": country,
    }
    values.update(overrides)
    return OperatingCompany(**values)


def make_merchant(country: str = "CY", **overrides: Any) -> Merchant:
    values: dict[str, Any] = {
        "merchant_id": str(uuid4()),
        "name": "Test merchant",
        "company_country": country,
        "operating_company_id": None,
        "first_payment_at": None,
    }
    values.update(overrides)
    return Merchant(**values)


def make_report(**overrides: Any) -> RoyaltyReport:
    """Build a royalty report with every column set."""
    values: dict[str, Any] = {
        "royalty_report_id": str(uuid4()),
        "merchant_id": str(uuid4()),
        "operating_company_id": str(uuid4()),
        "status": "pending",
        "currency": "EUR",
        "period_from": utc(2021, 1, 1),
        "period_to": utc(2021, 1, 31, 23, 59, 59, 999999),
        "string_period_from": "2021-01-01",
        "string_period_to": "2021-01-31",
        "gross_total_amount": Decimal("0"),
        "total_fees": Decimal("0"),
        "total_vat": Decimal("0"),
        "transactions_count": 0,
        "fee_amount": Decimal("0"),
        "payout_amount": Decimal("0"),
        "correction_amount": Decimal("0"),
        "rolling_reserve_amount": Decimal("0"),
        "b2b_vat_rate": Decimal("0"),
        "b2b_vat_base": Decimal("0"),
        "b2b_vat_amount": Decimal("0"),
        "final_payout_amount": Decimal("0"),
    }
    values.update(overrides)
    return RoyaltyReport(**values)


def make_payout(**overrides: Any) -> PayoutDocument:
    """Build a payout document with every column set."""
    values: dict[str, Any] = {
        "payout_document_id": str(uuid4()),
        "merchant_id": str(uuid4()),
        "operating_company_id": str(uuid4()),
        "status": "pending",
        "currency": "EUR",
        "company_country": "CY",
        "source_ids": [],
        "string_period_from": "",
        "string_period_to": "",
        "total_fees": Decimal("0"),
        "balance": Decimal("0"),
        "b2b_vat_rate": Decimal("0"),
        "b2b_vat_base": Decimal("0"),
        "b2b_vat_amount": Decimal("0"),
        "fees_excluding_vat": Decimal("0"),
        "created_at": utc(2021, 3, 1),
    }
    values.update(overrides)
    return PayoutDocument(**values)


# =============================================================================
# In-memory collaborators
# =============================================================================


class RepositoryUnavailable(RuntimeError):
    """Simulated infrastructure failure."""


class FakeMerchantRepository:
    def __init__(self, merchants: list[Merchant] | None = None):
        self.merchants = {m.merchant_id: m for m in merchants or []}
        self.calls: list[str] = []

    async def get_by_id(self, merchant_id: str) -> Merchant:
        self.calls.append(merchant_id)
        try:
            return self.merchants[merchant_id]
        except KeyError:
            raise NotFoundError("merchant", merchant_id) from None


class FakeOperatingCompanyRepository:
    def __init__(self, companies: list[OperatingCompany] | None = None):
        self.companies = list(companies or [])

    async def get_all(self) -> list[OperatingCompany]:
        return list(self.companies)

    async def get_by_id(self, operating_company_id: str) -> OperatingCompany:
        for company in self.companies:
            if company.operating_company_id == operating_company_id:
                return company
        raise NotFoundError("operating company", operating_company_id)


class FakeRoyaltyReportRepository:
    def __init__(self, reports: list[RoyaltyReport] | None = None):
        self.reports = {r.royalty_report_id: r for r in reports or []}
        self.updates: list[tuple[str, str, str]] = []
        self.fail_after: int | None = None

    async def get_all(self) -> list[RoyaltyReport]:
        return list(self.reports.values())

    async def get_by_id(self, report_id: str) -> RoyaltyReport:
        try:
            return self.reports[report_id]
        except KeyError:
            raise NotFoundError("royalty report", report_id) from None

    async def find(self, criteria: RoyaltyReportFilter) -> list[RoyaltyReport]:
        found = []
        for report in self.reports.values():
            if criteria.merchant_id and report.merchant_id != criteria.merchant_id:
                continue
            if (
                criteria.operating_company_id
                and report.operating_company_id != criteria.operating_company_id
            ):
                continue
            if criteria.period_from and from_storage(report.period_from) < criteria.period_from:
                continue
            if criteria.period_to and from_storage(report.period_to) > criteria.period_to:
                continue
            found.append(report)
        return found

    async def update(self, report: RoyaltyReport, actor_ip: str, source: str) -> None:
        if self.fail_after is not None and len(self.updates) >= self.fail_after:
            raise RepositoryUnavailable("royalty report storage unavailable")
        self.updates.append((report.royalty_report_id, actor_ip, source))


class FakePayoutRepository:
    def __init__(self, payouts: list[PayoutDocument] | None = None):
        self.payouts = {p.payout_document_id: p for p in payouts or []}
        self.updates: list[tuple[str, str, str]] = []
        self.filters: list[PayoutFilter] = []

    async def find_all(self) -> list[PayoutDocument]:
        return list(self.payouts.values())

    async def find(self, criteria: PayoutFilter) -> list[PayoutDocument]:
        self.filters.append(criteria)
        found = []
        for payout in self.payouts.values():
            if criteria.statuses and payout.status not in criteria.statuses:
                continue
            if criteria.date_from and from_storage(payout.created_at) < criteria.date_from:
                continue
            if (
                criteria.operating_company_id
                and payout.operating_company_id != criteria.operating_company_id
            ):
                continue
            found.append(payout)
        return found[: criteria.limit] if criteria.limit else found

    async def update(self, payout: PayoutDocument, actor_ip: str, source: str) -> None:
        self.updates.append((payout.payout_document_id, actor_ip, source))


class FakeSummaryProvider:
    def __init__(
        self,
        summary: RoyaltyReportSummary | None = None,
        error: Exception | None = None,
    ):
        self.summary = summary
        self.error = error
        self.calls: list[tuple[str, datetime, datetime]] = []

    async def build(
        self, merchant: Merchant, date_from: datetime, date_to: datetime
    ) -> RoyaltyReportSummary:
        self.calls.append((merchant.merchant_id, date_from, date_to))
        if self.error is not None:
            raise self.error
        assert self.summary is not None
        return self.summary


# =============================================================================
# Database fixtures
# =============================================================================


@pytest_asyncio.fixture
async def engine():
    """Create an in-memory test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def reporting_tz() -> ZoneInfo:
    return UTC
