"""Collaborator protocols consumed by the settlement core.

The calculators and batch jobs depend only on these protocols. SQLAlchemy
implementations live alongside; tests substitute in-memory fakes.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Protocol

from settlement_engine.calculators.types import RoyaltyReportSummary
from settlement_engine.models import Merchant, OperatingCompany, PayoutDocument, RoyaltyReport

# Audit sources recorded with every update
CHANGE_SOURCE_ADMIN = "admin"
CHANGE_SOURCE_SYSTEM_TASK = "system_task"

SYSTEM_ACTOR_IP = "127.0.0.1"


class NotFoundError(LookupError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


@dataclass(frozen=True)
class PayoutFilter:
    """Criteria for ``PayoutRepository.find``."""

    statuses: tuple[str, ...] = ()
    date_from: datetime.datetime | None = None  # created_at >= date_from
    operating_company_id: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class RoyaltyReportFilter:
    """Criteria for ``RoyaltyReportRepository.find``."""

    merchant_id: str | None = None
    operating_company_id: str | None = None
    statuses: tuple[str, ...] = field(default_factory=tuple)
    period_from: datetime.datetime | None = None  # period_from >= this
    period_to: datetime.datetime | None = None  # period_to <= this


class MerchantRepository(Protocol):
    async def get_by_id(self, merchant_id: str) -> Merchant:
        """Return the merchant or raise NotFoundError."""
        ...


class OperatingCompanyRepository(Protocol):
    async def get_all(self) -> list[OperatingCompany]:
        ...

    async def get_by_id(self, operating_company_id: str) -> OperatingCompany:
        """Return the operating company or raise NotFoundError."""
        ...


class RoyaltyReportRepository(Protocol):
    async def get_all(self) -> list[RoyaltyReport]:
        ...

    async def get_by_id(self, report_id: str) -> RoyaltyReport:
        """Return the report or raise NotFoundError."""
        ...

    async def find(self, criteria: RoyaltyReportFilter) -> list[RoyaltyReport]:
        ...

    async def update(self, report: RoyaltyReport, actor_ip: str, source: str) -> None:
        """Persist the report as its own unit of work and record the change."""
        ...


class PayoutRepository(Protocol):
    async def find_all(self) -> list[PayoutDocument]:
        ...

    async def find(self, criteria: PayoutFilter) -> list[PayoutDocument]:
        ...

    async def update(self, payout: PayoutDocument, actor_ip: str, source: str) -> None:
        """Persist the payout as its own unit of work and record the change."""
        ...


class RoyaltySummaryProvider(Protocol):
    """Builds a royalty report summary for a merchant and date window.

    Errors raised here are infrastructure failures and propagate to the
    caller unchanged.
    """

    async def build(
        self,
        merchant: Merchant,
        date_from: datetime.datetime,
        date_to: datetime.datetime,
    ) -> RoyaltyReportSummary:
        ...
