"""Settlement calculations."""

from settlement_engine.calculators.money import (
    InvalidAmountError,
    MoneyRounder,
    MoneyValue,
    RoundingPolicy,
    RoundingPolicyResolver,
    round_half_up,
)
from settlement_engine.calculators.types import (
    ActOfCompletionDocument,
    ActOfCompletionPeriod,
    ProductsTotal,
    RoundingKey,
    RoyaltyReportSummary,
    SummaryTotals,
)

__all__ = [
    "InvalidAmountError",
    "MoneyRounder",
    "MoneyValue",
    "RoundingPolicy",
    "RoundingPolicyResolver",
    "round_half_up",
    "ActOfCompletionDocument",
    "ActOfCompletionPeriod",
    "ProductsTotal",
    "RoundingKey",
    "RoyaltyReportSummary",
    "SummaryTotals",
]
