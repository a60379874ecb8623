"""Royalty report models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from settlement_engine.models.base import Base, TimestampMixin, new_id


class RoyaltyReport(Base, TimestampMixin):
    """Per-merchant, per-period financial summary.

    Period boundaries are stored in UTC; the string forms are the
    ``YYYY-MM-DD`` renderings in the reporting timezone.
    """

    __tablename__ = "royalty_report"

    royalty_report_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_id
    )
    merchant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("merchant.merchant_id"), nullable=False
    )
    operating_company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("operating_company.operating_company_id"), nullable=False
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")

    period_from: Mapped[datetime] = mapped_column(nullable=False)
    period_to: Mapped[datetime] = mapped_column(nullable=False)
    string_period_from: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    string_period_to: Mapped[str] = mapped_column(String(10), nullable=False, default="")

    # Products total
    gross_total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_fees: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_vat: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    # Totals
    transactions_count: Mapped[int] = mapped_column(Integer, default=0)
    fee_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    payout_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    correction_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    rolling_reserve_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    b2b_vat_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    b2b_vat_base: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    b2b_vat_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    final_payout_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))


class RoyaltyReportChange(Base, TimestampMixin):
    """Audit record written on every royalty report update."""

    __tablename__ = "royalty_report_change"

    royalty_report_change_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_id
    )
    royalty_report_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("royalty_report.royalty_report_id"), nullable=False
    )
    ip: Mapped[str] = mapped_column(String, nullable=False, default="")
    source: Mapped[str] = mapped_column(String, nullable=False)
    snapshot_json: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    snapshot_hash: Mapped[str] = mapped_column(String(64), nullable=False)
