"""Persistence collaborators."""

from settlement_engine.repositories.base import (
    CHANGE_SOURCE_ADMIN,
    CHANGE_SOURCE_SYSTEM_TASK,
    MerchantRepository,
    NotFoundError,
    OperatingCompanyRepository,
    PayoutFilter,
    PayoutRepository,
    RoyaltyReportFilter,
    RoyaltyReportRepository,
    RoyaltySummaryProvider,
)
from settlement_engine.repositories.merchant import (
    SqlMerchantRepository,
    SqlOperatingCompanyRepository,
)
from settlement_engine.repositories.payout import SqlPayoutRepository
from settlement_engine.repositories.royalty_report import SqlRoyaltyReportRepository
from settlement_engine.repositories.summary_provider import StoredRoyaltySummaryProvider

__all__ = [
    "CHANGE_SOURCE_ADMIN",
    "CHANGE_SOURCE_SYSTEM_TASK",
    "MerchantRepository",
    "NotFoundError",
    "OperatingCompanyRepository",
    "PayoutFilter",
    "PayoutRepository",
    "RoyaltyReportFilter",
    "RoyaltyReportRepository",
    "RoyaltySummaryProvider",
    "SqlMerchantRepository",
    "SqlOperatingCompanyRepository",
    "SqlPayoutRepository",
    "SqlRoyaltyReportRepository",
    "StoredRoyaltySummaryProvider",
]
