"""Payout document models."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from settlement_engine.models.base import Base, TimestampMixin, new_id


class PayoutDocument(Base, TimestampMixin):
    """Disbursement record aggregating one or more royalty reports.

    ``source_ids`` keeps the constituent royalty report ids in order.
    """

    __tablename__ = "payout_document"

    payout_document_id: Mapped[str] = mapped_column(
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
    company_country: Mapped[str] = mapped_column(String(2), nullable=False)
    source_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    string_period_from: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    string_period_to: Mapped[str] = mapped_column(String(10), nullable=False, default="")

    total_fees: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    balance: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    b2b_vat_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    b2b_vat_base: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    b2b_vat_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    fees_excluding_vat: Mapped[Decimal] = mapped_column(default=Decimal("0"))


class PayoutDocumentChange(Base, TimestampMixin):
    """Audit record written on every payout document update."""

    __tablename__ = "payout_document_change"

    payout_document_change_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_id
    )
    payout_document_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("payout_document.payout_document_id"), nullable=False
    )
    ip: Mapped[str] = mapped_column(String, nullable=False, default="")
    source: Mapped[str] = mapped_column(String, nullable=False)
    snapshot_json: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    snapshot_hash: Mapped[str] = mapped_column(String(64), nullable=False)
