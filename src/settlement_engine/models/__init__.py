"""ORM models."""

from settlement_engine.models.base import Base, TimestampMixin
from settlement_engine.models.merchant import Merchant, OperatingCompany
from settlement_engine.models.payout import PayoutDocument, PayoutDocumentChange
from settlement_engine.models.royalty import RoyaltyReport, RoyaltyReportChange

__all__ = [
    "Base",
    "TimestampMixin",
    "Merchant",
    "OperatingCompany",
    "PayoutDocument",
    "PayoutDocumentChange",
    "RoyaltyReport",
    "RoyaltyReportChange",
]
