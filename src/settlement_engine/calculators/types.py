"""Type definitions for the settlement calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import NamedTuple


class RoundingKey(NamedTuple):
    """Named rounding slot, e.g. ``RoundingKey(merchant_id, "gross_total")``."""

    scope_id: str
    field_key: str

    def __str__(self) -> str:
        return f"{self.scope_id}_{self.field_key}"


@dataclass
class ProductsTotal:
    """Per-product aggregates of a royalty report summary."""

    gross_total_amount: Decimal | float = Decimal("0")
    total_fees: Decimal | float = Decimal("0")
    total_vat: Decimal | float = Decimal("0")


@dataclass
class SummaryTotals:
    """Report-level totals of a royalty report summary."""

    correction_amount: Decimal | float = Decimal("0")
    rolling_reserve_amount: Decimal | float = Decimal("0")
    transactions_count: int = 0
    payout_amount: Decimal | float = Decimal("0")
    fee_amount: Decimal | float = Decimal("0")
    b2b_vat_rate: Decimal = Decimal("0")
    b2b_vat_base: Decimal = Decimal("0")
    b2b_vat_amount: Decimal = Decimal("0")
    final_payout_amount: Decimal = Decimal("0")


@dataclass
class RoyaltyReportSummary:
    """Output contract of a royalty summary provider.

    Amounts may arrive as floats (sums over many transactions); the
    calculator rounds them before use.
    """

    merchant_id: str
    period_from: datetime
    period_to: datetime
    string_period_from: str
    string_period_to: str
    products_total: ProductsTotal = field(default_factory=ProductsTotal)
    totals: SummaryTotals = field(default_factory=SummaryTotals)
    operating_company_id: str | None = None
    currency: str = "EUR"

    def __post_init__(self) -> None:
        if self.period_from > self.period_to:
            raise ValueError(
                f"summary period_from {self.period_from} is after period_to {self.period_to}"
            )


@dataclass(frozen=True)
class ActOfCompletionDocument:
    """Read-only settlement projection for a merchant and date window."""

    merchant_id: str
    date_from: str
    date_to: str
    total_fees: Decimal
    balance: Decimal
    total_transactions: int
    corrections_amount: Decimal = Decimal("0")
    b2b_vat_rate: Decimal = Decimal("0")
    b2b_vat_base: Decimal = Decimal("0")
    b2b_vat_amount: Decimal = Decimal("0")
    fees_excluding_vat: Decimal = Decimal("0")


@dataclass(frozen=True)
class ActOfCompletionPeriod:
    """One closed month a merchant can request an act of completion for."""

    date_title: str  # YYYY-MM
    date_from: str  # YYYY-MM-DD
    date_to: str  # YYYY-MM-DD
